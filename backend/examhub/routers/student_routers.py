from fastapi import APIRouter, Depends, HTTPException, status
from fastapi_users.password import PasswordHelper
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, delete, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.help_model import SupportTicket
from ..models.student_exam_model import StudentExam, StudentExamSubject
from ..models.user_model import User, UserRole, UserStatus
from ..schemas.student_schema import (
    StudentCreate, StudentStatusUpdate, StudentDetailsUpdate, StudentRead, StudentSummary, StudentExamRow,
)
from ..services.student_service import (
    list_students, load_student, identity_taken, student_exams, _student_to_read_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Student"])

can_read = require_permission("users.read")
can_write = require_permission("users.write")
can_delete = require_permission("users.delete")

IDENTITY_CONFLICT = "Username, Student ID or Email already in use by another student"


async def _student_or_404(session: AsyncSession, student_id: UUID) -> User:
    student = await load_student(session, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.get("", response_model=List[StudentSummary], dependencies=[Depends(can_read)])
async def get_students(
    state: Optional[str] = None,
    district: Optional[str] = None,
    region: Optional[str] = None,
    college: Optional[str] = None,
    status: Optional[str] = None,
    session: AsyncSession = Depends(get_async_session),
):
    return await list_students(
        session, state=state, district=district, region=region, college=college, status=status
    )


@router.get("/filters", dependencies=[Depends(can_read)])
async def get_filter_options(session: AsyncSession = Depends(get_async_session)):
    out = {}
    for key, column in (
        ("states", User.state),
        ("districts", User.district),
        ("regions", User.region),
        ("colleges", User.college),
        ("statuses", User.status),
    ):
        res = await session.execute(
            select(distinct(column))
            .where(User.role == UserRole.STUDENT, column.is_not(None), column != "")
            .order_by(column)
        )
        out[key] = res.scalars().all()
    return out


@router.post("", response_model=StudentRead, status_code=status.HTTP_201_CREATED, dependencies=[Depends(can_write)])
async def add_student(payload: StudentCreate, session: AsyncSession = Depends(get_async_session)):
    if await identity_taken(session, payload.username, payload.student_id, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IDENTITY_CONFLICT)

    student = User(
        email=payload.email,
        hashed_password=PasswordHelper().hash(payload.password),
        is_active=True,
        is_verified=False,
        is_superuser=False,
        role=UserRole.STUDENT,
        student_id=payload.student_id,
        username=payload.username,
        full_name=payload.full_name,
        status=UserStatus.ACTIVE.value,
        state=payload.state or None,
        district=payload.district or None,
        region=payload.region or None,
        college=payload.college or None,
    )
    try:
        session.add(student)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IDENTITY_CONFLICT)
    except Exception:
        await session.rollback()
        logger.exception("Failed to add student %s", payload.username)
        raise

    await session.refresh(student)
    return _student_to_read_dict(student)


@router.get("/{student_id}", response_model=StudentRead, dependencies=[Depends(can_read)])
async def get_student(student_id: UUID, session: AsyncSession = Depends(get_async_session)):
    return _student_to_read_dict(await _student_or_404(session, student_id))


@router.get("/{student_id}/exams", response_model=List[StudentExamRow], dependencies=[Depends(can_read)])
async def get_student_exams(student_id: UUID, session: AsyncSession = Depends(get_async_session)):
    await _student_or_404(session, student_id)
    return await student_exams(session, student_id)


@router.put("/{student_id}", dependencies=[Depends(can_write)])
async def update_student_status(
    student_id: UUID, payload: StudentStatusUpdate, session: AsyncSession = Depends(get_async_session)
):
    student = await _student_or_404(session, student_id)
    student.status = payload.status.value
    await session.commit()
    return {"message": "Student updated"}


@router.put("/{student_id}/details", dependencies=[Depends(can_write)])
async def edit_student(
    student_id: UUID, payload: StudentDetailsUpdate, session: AsyncSession = Depends(get_async_session)
):
    student = await _student_or_404(session, student_id)

    if await identity_taken(session, payload.username, payload.student_id, payload.email, exclude_id=student.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=IDENTITY_CONFLICT)

    student.student_id = payload.student_id
    student.username = payload.username
    student.email = payload.email
    student.full_name = payload.full_name
    student.status = payload.status.value
    student.state = payload.state or None
    student.district = payload.district or None
    student.region = payload.region or None
    student.college = payload.college or None
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=IDENTITY_CONFLICT)

    return {"message": "Student updated successfully"}


@router.delete("/{student_id}", dependencies=[Depends(can_delete)])
async def delete_student(student_id: UUID, session: AsyncSession = Depends(get_async_session)):
    student = await _student_or_404(session, student_id)

    attempt_ids = select(StudentExam.student_exam_id).where(StudentExam.user_id == student.id)
    try:
        await session.execute(delete(StudentExamSubject).where(StudentExamSubject.student_exam_id.in_(attempt_ids)))
        await session.execute(delete(StudentExam).where(StudentExam.user_id == student.id))
        await session.execute(delete(SupportTicket).where(SupportTicket.user_id == student.id))
        await session.delete(student)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to delete student %s", student_id)
        raise

    return {"message": "Student deleted successfully"}
