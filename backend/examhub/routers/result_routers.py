from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import date

from sqlalchemy import select, distinct, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.exam_model import Exam, ExamSubject
from ..models.student_exam_model import StudentExam, StudentExamSubject
from ..models.subject_model import Subject
from ..models.user_model import User
from ..schemas.result_schema import ResultRow, SubjectScore, SubjectsList
from ..services.result_service import completed_conditions, ranked_results

router = APIRouter(prefix="/results", tags=["Results"])

can_read = require_permission("results.read")

EXAM_TYPES = ("IIT", "NEET")


@router.get("", response_model=List[ResultRow], dependencies=[Depends(can_read)])
async def get_results(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: AsyncSession = Depends(get_async_session),
):
    """
    One row per completed attempt with exam, per-state, per-district and
    global ranks (ties share a rank, the next rank skips).
    """
    return await ranked_results(session, *completed_conditions(start_date, end_date))


@router.get("/regions", dependencies=[Depends(can_read)])
async def get_regions(state: Optional[str] = None, session: AsyncSession = Depends(get_async_session)):
    district = func.trim(User.district)
    has_district = [User.district.is_not(None), User.district != ""]

    if state and state.strip():
        res = await session.execute(
            select(distinct(district))
            .where(User.state.is_not(None), User.state != "", func.trim(User.state) == state.strip(), *has_district)
            .order_by(district)
        )
        return {"districts": res.scalars().all()}

    state_col = func.trim(User.state)
    states = await session.execute(
        select(distinct(state_col)).where(User.state.is_not(None), User.state != "").order_by(state_col)
    )
    districts = await session.execute(select(distinct(district)).where(*has_district).order_by(district))
    return {"states": states.scalars().all(), "districts": districts.scalars().all()}


@router.get("/subjects-list", response_model=SubjectsList, dependencies=[Depends(can_read)])
async def get_subjects_list(
    exam_type: Optional[str] = Query(None, alias="examType"),
    session: AsyncSession = Depends(get_async_session),
):
    # subjects actually used by exams first, the catalogue only when none exist
    if exam_type not in EXAM_TYPES:
        exam_type = None

    stmt = select(distinct(ExamSubject.subject)).join(Exam, ExamSubject.exam_id == Exam.exam_id)
    if exam_type:
        stmt = stmt.where(Exam.exam_type == exam_type)
    subjects = (await session.execute(stmt.order_by(ExamSubject.subject))).scalars().all()

    if not subjects:
        stmt = select(distinct(Subject.name))
        if exam_type:
            stmt = stmt.where(Subject.exam_type == exam_type)
        subjects = (await session.execute(stmt.order_by(Subject.name))).scalars().all()

    return {"subjects": subjects}


@router.get("/subjects/{student_exam_id}", response_model=List[SubjectScore], dependencies=[Depends(can_read)])
async def get_subject_scores(student_exam_id: int, session: AsyncSession = Depends(get_async_session)):
    res = await session.execute(
        select(ExamSubject.subject, StudentExamSubject.score, StudentExamSubject.percentage)
        .join(ExamSubject, StudentExamSubject.exam_subject_id == ExamSubject.exam_subject_id)
        .where(StudentExamSubject.student_exam_id == student_exam_id)
        .order_by(ExamSubject.exam_subject_id)
    )
    return [dict(row._mapping) for row in res.all()]


@router.get("/{exam_id}", response_model=List[ResultRow], dependencies=[Depends(can_read)])
async def get_exam_results(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    # ranks are computed within this exam only
    return await ranked_results(session, StudentExam.exam_id == exam_id, *completed_conditions())
