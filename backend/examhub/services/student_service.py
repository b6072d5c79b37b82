from typing import List, Optional

from sqlalchemy import select, func, case, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.exam_model import Exam
from ..models.student_exam_model import StudentExam
from ..models.user_model import User, UserRole

ROSTER_FILTERS = ("state", "district", "region", "college", "status")


def _student_to_read_dict(user: User) -> dict:
    return {
        "user_id": user.id,
        "student_id": user.student_id,
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "status": user.status,
        "state": user.state,
        "district": user.district,
        "region": user.region,
        "college": user.college,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def preference_from_flags(has_iit, has_neet) -> str:
    if has_iit:
        return "IIT"
    if has_neet:
        return "NEET"
    return "N/A"


async def list_students(session: AsyncSession, **filters) -> List[dict]:
    """Roster with per-student attempt stats in a single grouped query."""
    exams_taken = func.count(StudentExam.student_exam_id)
    avg_percentage = func.avg(case((StudentExam.student_exam_id.is_(None), None), else_=func.coalesce(StudentExam.percentage, 0)))
    has_iit = func.max(case((Exam.exam_type == "IIT", 1), else_=0))
    has_neet = func.max(case((Exam.exam_type == "NEET", 1), else_=0))
    last_completed = func.max(StudentExam.completed_at)

    stmt = (
        select(
            User,
            exams_taken.label("exams_taken"),
            avg_percentage.label("average_percentage"),
            has_iit.label("has_iit"),
            has_neet.label("has_neet"),
            last_completed.label("last_completed"),
        )
        .select_from(User)
        .outerjoin(StudentExam, StudentExam.user_id == User.id)
        .outerjoin(Exam, Exam.exam_id == StudentExam.exam_id)
        .where(User.role == UserRole.STUDENT)
    )
    for name in ROSTER_FILTERS:
        value = filters.get(name)
        if value:
            stmt = stmt.where(getattr(User, name) == value)
    stmt = stmt.group_by(User.id).order_by(User.created_at.desc())

    out = []
    for row in (await session.execute(stmt)).all():
        item = _student_to_read_dict(row.User)
        item["exams_taken"] = row.exams_taken or 0
        item["average_percentage"] = round(float(row.average_percentage or 0), 1)
        item["preference"] = preference_from_flags(row.has_iit, row.has_neet)
        item["last_active"] = row.last_completed or row.User.updated_at
        out.append(item)
    return out


async def load_student(session: AsyncSession, user_id) -> Optional[User]:
    res = await session.execute(select(User).where(User.id == user_id, User.role == UserRole.STUDENT))
    return res.scalar_one_or_none()


async def identity_taken(session: AsyncSession, username: str, student_id: str, email: str, exclude_id=None) -> bool:
    stmt = select(User.id).where(
        or_(User.username == username, User.student_id == student_id, func.lower(User.email) == email.lower())
    )
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    res = await session.execute(stmt.limit(1))
    return res.first() is not None


async def student_exams(session: AsyncSession, user_id) -> List[dict]:
    res = await session.execute(
        select(
            StudentExam.student_exam_id,
            Exam.exam_id,
            Exam.title,
            Exam.exam_type,
            Exam.start_date,
            Exam.start_time,
            StudentExam.status,
            StudentExam.score,
            StudentExam.percentage,
            StudentExam.completed_at,
        )
        .join(Exam, StudentExam.exam_id == Exam.exam_id)
        .where(StudentExam.user_id == user_id)
        .order_by(Exam.start_date.desc())
    )
    return [dict(row._mapping) for row in res.all()]
