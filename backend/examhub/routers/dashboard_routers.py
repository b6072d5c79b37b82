from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import date

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import current_admin
from ..models.exam_model import Exam
from ..models.student_exam_model import StudentExam, AttemptStatus
from ..models.user_model import User, UserRole
from ..schemas.result_schema import DashboardStats, RecentExam

router = APIRouter(prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(current_admin)])

RECENT_EXAM_LIMIT = 4


def _exam_date_conditions(start_date: Optional[date], end_date: Optional[date]) -> list:
    conds = []
    if start_date:
        conds.append(Exam.start_date >= start_date)
    if end_date:
        conds.append(Exam.start_date <= end_date)
    return conds


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Headline numbers for the admin dashboard.

    - total_students ignores the date range.
    - total_exams, avg_score and completion_rate only count exams whose
      start_date falls in the range.
    """
    exam_conds = _exam_date_conditions(start_date, end_date)

    total_students = (
        await session.execute(select(func.count(User.id)).where(User.role == UserRole.STUDENT))
    ).scalar_one()
    total_exams = (await session.execute(select(func.count(Exam.exam_id)).where(*exam_conds))).scalar_one()

    avg_score = (
        await session.execute(
            select(func.avg(StudentExam.percentage))
            .join(Exam, Exam.exam_id == StudentExam.exam_id)
            .where(
                StudentExam.status == AttemptStatus.COMPLETED.value,
                StudentExam.percentage.is_not(None),
                *exam_conds,
            )
        )
    ).scalar_one()

    completed, attempts = (
        await session.execute(
            select(
                func.sum(case((StudentExam.status == AttemptStatus.COMPLETED.value, 1), else_=0)),
                func.count(StudentExam.student_exam_id),
            )
            .join(Exam, Exam.exam_id == StudentExam.exam_id)
            .where(StudentExam.status.in_([s.value for s in AttemptStatus]), *exam_conds)
        )
    ).one()

    return {
        "total_students": total_students or 0,
        "total_exams": total_exams or 0,
        "avg_score": round(float(avg_score), 1) if avg_score is not None else 0,
        "completion_rate": round(float(completed or 0) / attempts * 100, 1) if attempts else 0,
    }


@router.get("/recent-exams", response_model=List[RecentExam])
async def get_recent_exams(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    session: AsyncSession = Depends(get_async_session),
):
    res = await session.execute(
        select(
            Exam.exam_id,
            Exam.title,
            Exam.exam_type,
            Exam.start_date,
            Exam.status,
            func.count(StudentExam.student_exam_id).label("participants"),
        )
        .outerjoin(StudentExam, StudentExam.exam_id == Exam.exam_id)
        .where(*_exam_date_conditions(start_date, end_date))
        .group_by(Exam.exam_id, Exam.title, Exam.exam_type, Exam.start_date, Exam.status)
        .order_by(Exam.start_date.desc(), Exam.exam_id.desc())
        .limit(RECENT_EXAM_LIMIT)
    )
    return [dict(row._mapping) for row in res.all()]
