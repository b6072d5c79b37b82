from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional
from datetime import date
import logging

from sqlalchemy import select, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.exam_model import Exam, DEFAULT_VENUE
from ..models.question_model import Question
from ..models.student_exam_model import StudentExam, AttemptStatus
from ..models.user_model import User
from ..schemas.exam_schema import (
    ExamCreate, ExamUpdate, ExamListItem, ExamDetail, ExamSubjectRead, CloneSetRequest, RegisterStudentsRequest,
)
from ..services.exam_service import (
    DUPLICATE_SET_MESSAGE, is_unique_violation, load_exam, set_exists, subjects_by_exam,
    sync_exam_subjects, copy_exam_subjects, delete_exam_tree, list_exams, exam_group_sets, _exam_to_read_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["Exams"])

can_read = require_permission("exams.read")
can_write = require_permission("exams.write")
can_delete = require_permission("exams.delete")


async def _distinct_strings(session: AsyncSession, column) -> List[str]:
    res = await session.execute(
        select(distinct(column)).where(column.is_not(None), column != "").order_by(column)
    )
    return [v for v in res.scalars().all()]


# meta routes are declared before /{exam_id} so they are not taken for ids
@router.get("/meta/question-types", response_model=List[str], dependencies=[Depends(can_read)])
async def question_types(session: AsyncSession = Depends(get_async_session)):
    return await _distinct_strings(session, Question.question_type)


@router.get("/meta/exam-categories", response_model=List[str], dependencies=[Depends(can_read)])
async def exam_categories(session: AsyncSession = Depends(get_async_session)):
    return await _distinct_strings(session, Exam.category)


@router.get("/meta/exam-types", response_model=List[str], dependencies=[Depends(can_read)])
async def exam_types(session: AsyncSession = Depends(get_async_session)):
    return await _distinct_strings(session, Exam.exam_type)


@router.get("", response_model=List[ExamListItem], dependencies=[Depends(can_read)])
async def get_all_exams(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    category: Optional[str] = None,
    session: AsyncSession = Depends(get_async_session),
):
    return await list_exams(session, start_date=start_date, end_date=end_date, category=category)


@router.get("/{exam_id}", response_model=ExamDetail, dependencies=[Depends(can_read)])
async def get_exam(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    subjects = await subjects_by_exam(session, [exam.exam_id])
    out = _exam_to_read_dict(exam)
    out["subjects"] = [ExamSubjectRead.model_validate(s) for s in subjects[exam.exam_id]]
    return out


@router.post("", dependencies=[Depends(can_write)])
async def create_exam(payload: ExamCreate, session: AsyncSession = Depends(get_async_session)):
    # exam and its subjects are written in one transaction
    if payload.set_type and await set_exists(
        session, payload.title, payload.start_date, payload.category, payload.set_type
    ):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)

    exam = Exam(
        title=payload.title,
        exam_type=payload.exam_type,
        exam_format=payload.exam_format.value,
        total_marks=payload.total_marks,
        duration=payload.duration,
        start_date=payload.start_date,
        start_time=payload.start_time,
        venue=payload.venue or DEFAULT_VENUE,
        description=payload.description,
        category=payload.category,
        set_type=payload.set_type,
    )
    try:
        session.add(exam)
        await session.flush()
        await sync_exam_subjects(session, exam.exam_id, payload.subjects)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)
        raise
    except Exception:
        await session.rollback()
        logger.exception("Failed to create exam %r", payload.title)
        raise

    logger.info("Exam %s created (%s)", exam.exam_id, exam.title)
    return {"message": "Exam created", "exam_id": exam.exam_id}


@router.put("/{exam_id}", dependencies=[Depends(can_write)])
async def update_exam(exam_id: int, payload: ExamUpdate, session: AsyncSession = Depends(get_async_session)):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    if payload.set_type and await set_exists(
        session, payload.title, payload.start_date, payload.category, payload.set_type, exclude_exam_id=exam_id
    ):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)

    exam.title = payload.title
    exam.exam_type = payload.exam_type
    exam.exam_format = payload.exam_format.value
    exam.total_marks = payload.total_marks
    exam.duration = payload.duration
    exam.start_date = payload.start_date
    exam.start_time = payload.start_time
    exam.venue = payload.venue or DEFAULT_VENUE
    exam.description = payload.description
    exam.category = payload.category
    exam.set_type = payload.set_type
    if payload.status is not None:
        exam.status = payload.status.value

    try:
        await session.flush()
        await sync_exam_subjects(session, exam.exam_id, payload.subjects)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)
        raise
    except Exception:
        await session.rollback()
        logger.exception("Failed to update exam %s", exam_id)
        raise

    return {"message": "Exam updated successfully"}


@router.delete("/{exam_id}", dependencies=[Depends(can_delete)])
async def delete_exam(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    try:
        await delete_exam_tree(session, exam_id)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to delete exam %s", exam_id)
        raise
    return {"message": "Exam deleted"}


@router.post("/{exam_id}/create-set", dependencies=[Depends(can_write)])
async def create_set(exam_id: int, payload: CloneSetRequest, session: AsyncSession = Depends(get_async_session)):
    """Clone a realtime exam into a sibling set of the same group.

    Only the exam row and its subject rows are copied; questions and
    registrations stay with the source set.
    """
    set_type = (payload.set_type or "").strip()
    if not set_type:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="set_type is required")

    source = await load_exam(session, exam_id)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    if not source.is_realtime:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sets can only be created for Realtime exams")

    if await set_exists(session, source.title, source.start_date, source.category, set_type):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)

    clone = Exam(
        title=source.title,
        exam_type=source.exam_type,
        exam_format=source.exam_format,
        total_marks=source.total_marks,
        duration=source.duration,
        start_date=source.start_date,
        start_time=source.start_time,
        venue=source.venue,
        status=source.status,
        description=source.description,
        category=source.category,
        set_type=set_type,
    )
    try:
        session.add(clone)
        await session.flush()
        await copy_exam_subjects(session, source.exam_id, clone.exam_id)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if is_unique_violation(e):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_SET_MESSAGE)
        raise
    except Exception:
        await session.rollback()
        logger.exception("Failed to clone exam %s as set %r", exam_id, set_type)
        raise

    return {"message": "New set created", "exam_id": clone.exam_id}


@router.get("/{exam_id}/sets", dependencies=[Depends(can_read)])
async def get_sets(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    return await exam_group_sets(session, exam)


@router.post("/{exam_id}/register", dependencies=[Depends(can_write)])
async def register_students(
    exam_id: int, payload: RegisterStudentsRequest, session: AsyncSession = Depends(get_async_session)
):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")

    user_ids = list(dict.fromkeys(payload.user_ids))
    if user_ids:
        res = await session.execute(select(User.id).where(User.id.in_(user_ids)))
        if len(res.scalars().all()) != len(user_ids):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="One or more user IDs are invalid")

    try:
        res = await session.execute(
            select(StudentExam).where(StudentExam.exam_id == exam_id, StudentExam.user_id.in_(user_ids))
        )
        existing = {row.user_id: row for row in res.scalars().all()}
        for uid in user_ids:
            row = existing.get(uid)
            if row is not None:
                row.status = AttemptStatus.REGISTERED.value
            else:
                session.add(StudentExam(user_id=uid, exam_id=exam_id, status=AttemptStatus.REGISTERED.value))
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to register students for exam %s", exam_id)
        raise

    return {"message": "Students registered"}
