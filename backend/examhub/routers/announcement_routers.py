from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, status
from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import current_admin
from ..models.announcement_model import Announcement
from ..models.user_model import User
from ..schemas.announcement_schema import AnnouncementCreate, AnnouncementUpdate, AnnouncementRead
from ..services.storage_service import MediaStorage, get_storage, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["Announcements"], dependencies=[Depends(current_admin)])


@router.post("/upload")
async def upload_file(file: UploadFile = File(...), storage: MediaStorage = Depends(get_storage)):
    # bytes go to object storage, only the returned URL is ever saved on an announcement
    return await store_upload(file, storage)


@router.get("", response_model=List[AnnouncementRead])
async def get_announcements(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(
        select(Announcement).order_by(Announcement.created_at.desc(), Announcement.announcement_id.desc())
    )
    return res.scalars().all()


@router.post("", response_model=AnnouncementRead, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    payload: AnnouncementCreate,
    user: User = Depends(current_admin),
    session: AsyncSession = Depends(get_async_session),
):
    data = payload.model_dump(exclude_none=True)
    announcement = Announcement(**data, views=0, created_by=user.id)
    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    logger.info("Announcement %s created by %s", announcement.announcement_id, user.id)
    return announcement


@router.put("/{announcement_id}")
async def update_announcement(
    announcement_id: int, payload: AnnouncementUpdate, session: AsyncSession = Depends(get_async_session)
):
    res = await session.execute(select(Announcement).where(Announcement.announcement_id == announcement_id))
    announcement = res.scalar_one_or_none()
    if not announcement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")

    announcement.title = payload.title
    announcement.content = payload.content
    # URLs are replaced as sent, a missing URL clears the stored one
    announcement.media_url = payload.media_url
    announcement.video_url = payload.video_url
    for field in ("announcement_type", "priority", "target_audience", "status", "created_at", "expires_at"):
        if field in payload.model_fields_set:
            value = getattr(payload, field)
            if value is None and field != "expires_at":
                continue
            setattr(announcement, field, value)

    await session.commit()
    return {"message": "Announcement updated"}


@router.delete("/{announcement_id}")
async def delete_announcement(announcement_id: int, session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Announcement).where(Announcement.announcement_id == announcement_id))
    announcement = res.scalar_one_or_none()
    if not announcement:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Announcement not found")
    await session.delete(announcement)
    await session.commit()
    logger.info("Announcement %s deleted", announcement_id)
    return {"message": "Announcement deleted"}
