from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.subject_model import Subject
from ..schemas.subject_schema import SubjectCreate, SubjectUpdate, SubjectRead

router = APIRouter(prefix="/subjects", tags=["Subjects"])


async def _subject_or_404(session: AsyncSession, subject_id: int) -> Subject:
    subject = await session.get(Subject, subject_id)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


@router.get("", response_model=List[SubjectRead], dependencies=[Depends(require_permission("subjects.read"))])
async def get_subjects(session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(select(Subject).order_by(Subject.exam_type, Subject.name))
    return res.scalars().all()


@router.post("", dependencies=[Depends(require_permission("subjects.write"))])
async def create_subject(payload: SubjectCreate, session: AsyncSession = Depends(get_async_session)):
    subject = Subject(**payload.model_dump())
    session.add(subject)
    await session.commit()
    return {"message": "Subject created", "subject_id": subject.subject_id}


@router.put("/{subject_id}", dependencies=[Depends(require_permission("subjects.write"))])
async def update_subject(subject_id: int, payload: SubjectUpdate, session: AsyncSession = Depends(get_async_session)):
    # only the fields present in the body change
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    subject = await _subject_or_404(session, subject_id)
    for field, value in changes.items():
        if value is None and field != "description":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must not be empty")
        setattr(subject, field, value)
    await session.commit()
    return {"message": "Subject updated"}


@router.delete("/{subject_id}", dependencies=[Depends(require_permission("subjects.delete"))])
async def delete_subject(subject_id: int, session: AsyncSession = Depends(get_async_session)):
    subject = await _subject_or_404(session, subject_id)
    await session.delete(subject)
    await session.commit()
    return {"message": "Subject deleted"}
