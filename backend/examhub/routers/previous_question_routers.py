from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask
from typing import Callable, Optional
from datetime import date
from uuid import UUID
import logging

import httpx
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..models.previous_question_model import PreviousQuestionSet
from ..models.user_model import User
from ..schemas.previous_question_schema import PreviousQuestionCreate, PreviousQuestionRead, PreviousQuestionPage
from ..security import current_active_user
from ..services.resource_service import (
    preview_source, download_filename, content_disposition, get_http_client_factory,
)
from ..services.storage_service import MediaStorage, get_storage, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/previous-questions", tags=["Previous Questions"], dependencies=[Depends(current_active_user)])

MAX_PAGE_SIZE = 100


@router.get("", response_model=PreviousQuestionPage)
async def list_sets(
    course: Optional[str] = None,
    subject_mode: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    uploaded_by: Optional[UUID] = None,
    q: Optional[str] = None,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    session: AsyncSession = Depends(get_async_session),
):
    conds = []
    if course:
        conds.append(PreviousQuestionSet.course == course)
    if subject_mode:
        conds.append(PreviousQuestionSet.subject_mode == subject_mode)
    if uploaded_by:
        conds.append(PreviousQuestionSet.uploaded_by == uploaded_by)
    if start_date:
        conds.append(PreviousQuestionSet.exam_conducted_on >= start_date)
    if end_date:
        conds.append(PreviousQuestionSet.exam_conducted_on <= end_date)
    if q:
        pattern = f"%{q}%"
        conds.append(or_(PreviousQuestionSet.notes.like(pattern), PreviousQuestionSet.resource_url.like(pattern)))

    limit = max(1, min(MAX_PAGE_SIZE, page_size))
    page = max(1, page)

    res = await session.execute(
        select(PreviousQuestionSet, User.username, User.full_name)
        .join(User, User.id == PreviousQuestionSet.uploaded_by)
        .where(*conds)
        .order_by(PreviousQuestionSet.created_at.desc(), PreviousQuestionSet.pqs_id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    data = []
    for row in res.all():
        item = PreviousQuestionRead.model_validate(row.PreviousQuestionSet).model_dump()
        item["uploader_username"] = row.username
        item["uploader_name"] = row.full_name
        data.append(item)

    total = (
        await session.execute(select(func.count()).select_from(PreviousQuestionSet).where(*conds))
    ).scalar_one()

    return {"data": data, "page": page, "pageSize": limit, "total": int(total or 0)}


@router.post("", response_model=PreviousQuestionRead, status_code=status.HTTP_201_CREATED)
async def create_set(
    payload: PreviousQuestionCreate,
    user: User = Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    record = PreviousQuestionSet(
        course=payload.course,
        subject_mode=payload.subject_mode,
        subjects=[s.model_dump() for s in payload.subjects],
        exam_conducted_on=payload.exam_conducted_on,
        resource_url=payload.resource_url,
        notes=payload.notes or None,
        uploaded_by=user.id,
    )
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


@router.delete("/{pqs_id}")
async def delete_set(
    pqs_id: int,
    user: User = Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    res = await session.execute(select(PreviousQuestionSet).where(PreviousQuestionSet.pqs_id == pqs_id))
    record = res.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    if record.uploaded_by != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not allowed to delete this record")

    await session.delete(record)
    await session.commit()
    return {"message": "Deleted", "pqs_id": pqs_id}


@router.post("/upload")
async def upload_resource(file: UploadFile = File(...), storage: MediaStorage = Depends(get_storage)):
    return await store_upload(file, storage)


@router.get("/preview")
async def preview(url: Optional[str] = None):
    if not url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing url")
    return preview_source(url)


async def _close_upstream(upstream: httpx.Response, client: httpx.AsyncClient):
    await upstream.aclose()
    await client.aclose()


async def _stream_remote(url: Optional[str], download: bool, make_client: Callable[[], httpx.AsyncClient]):
    """Relay a remote resource without buffering it.

    The upstream response and client stay open until the body has been sent;
    a BackgroundTask closes both.
    """
    if not url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing url")

    client = make_client()
    try:
        upstream = await client.send(client.build_request("GET", url), stream=True)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol):
        await client.aclose()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid url")
    except httpx.HTTPError:
        await client.aclose()
        logger.exception("Proxy fetch of %s failed", url)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to download")

    if not upstream.is_success:
        await _close_upstream(upstream, client)
        logger.warning("Upstream %s answered %s", url, upstream.status_code)
        return PlainTextResponse(f"Upstream failed: {upstream.reason_phrase}", status_code=upstream.status_code)

    filename = download_filename(url, upstream.headers.get("content-disposition"))
    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers.get("content-type", "application/octet-stream"),
        headers={
            "Content-Disposition": content_disposition(filename, download),
            "Cache-Control": "private, max-age=60",
        },
        background=BackgroundTask(_close_upstream, upstream, client),
    )


@router.get("/proxy")
async def proxy(
    url: Optional[str] = None,
    download: int = 0,
    make_client: Callable[[], httpx.AsyncClient] = Depends(get_http_client_factory),
):
    return await _stream_remote(url, download == 1, make_client)


@router.get("/proxy-download")
async def proxy_download(
    url: Optional[str] = None,
    make_client: Callable[[], httpx.AsyncClient] = Depends(get_http_client_factory),
):
    return await _stream_remote(url, True, make_client)
