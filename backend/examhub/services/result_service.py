from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.exam_model import Exam, ExamFormat
from ..models.student_exam_model import StudentExam, AttemptStatus
from ..models.user_model import User
from .exam_service import subjects_by_exam


TITLE_SUBJECTS = ("Physics", "Chemistry", "Biology", "Mathematics")
GENERAL_SUBJECT = "General"


def subject_label(exam_format: Optional[str], title: Optional[str], subject_names: Iterable[str]) -> str:
    """Subject shown for an attempt.

    Uses the exam's own subject rows when there are any; a single-subject exam
    without rows falls back to a subject named in its title; anything else is
    "General".
    """
    names = sorted({n for n in subject_names if n})
    if names:
        return ",".join(names)
    if exam_format == ExamFormat.SINGLE.value:
        lowered = (title or "").lower()
        for subject in TITLE_SUBJECTS:
            if subject.lower() in lowered:
                return subject
    return GENERAL_SUBJECT


def format_duration(minutes: Optional[int]) -> str:
    minutes = minutes or 0
    return f"{minutes // 60}h {minutes % 60:02d}m"


def completed_conditions(start_date: Optional[date] = None, end_date: Optional[date] = None) -> list:
    """WHERE terms for completed attempts.

    Both dates give an inclusive range on the completion day; a single date
    selects that one day.
    """
    conditions = [StudentExam.status == AttemptStatus.COMPLETED.value]
    if start_date and end_date:
        first, last = start_date, end_date
    elif start_date or end_date:
        first = last = start_date or end_date
    else:
        return conditions
    conditions.append(StudentExam.completed_at >= datetime.combine(first, time.min))
    conditions.append(StudentExam.completed_at < datetime.combine(last + timedelta(days=1), time.min))
    return conditions


def ranked_results_stmt(*conditions):
    score_desc = StudentExam.score.desc().nulls_last()
    return (
        select(
            User.full_name,
            User.state,
            User.district,
            Exam.exam_id,
            Exam.title.label("exam_title"),
            Exam.exam_type,
            Exam.category,
            Exam.total_marks,
            Exam.exam_format,
            Exam.duration,
            StudentExam.student_exam_id,
            StudentExam.score,
            StudentExam.percentage,
            StudentExam.completed_at,
            func.rank().over(partition_by=StudentExam.exam_id, order_by=score_desc).label("ranking"),
            func.rank().over(partition_by=User.state, order_by=score_desc).label("state_rank"),
            func.rank().over(partition_by=User.district, order_by=score_desc).label("district_rank"),
            func.rank().over(order_by=score_desc).label("global_rank"),
        )
        .select_from(StudentExam)
        .join(User, StudentExam.user_id == User.id)
        .join(Exam, StudentExam.exam_id == Exam.exam_id)
        .where(*conditions)
    )


async def ranked_results(session: AsyncSession, *conditions) -> List[dict]:
    rows = (await session.execute(ranked_results_stmt(*conditions))).all()
    subjects = await subjects_by_exam(session, {r.exam_id for r in rows})

    out = []
    for r in rows:
        out.append({
            "full_name": r.full_name,
            "state": r.state,
            "district": r.district,
            "exam_id": r.exam_id,
            "exam_title": r.exam_title,
            "exam_type": r.exam_type,
            "category": r.category,
            "total_marks": r.total_marks,
            "student_exam_id": r.student_exam_id,
            "subject": subject_label(r.exam_format, r.exam_title, [s.subject for s in subjects.get(r.exam_id, [])]),
            "score": r.score,
            "percentage": r.percentage,
            "completed_on": r.completed_at.strftime("%Y-%m-%d") if r.completed_at else None,
            "time_spent": format_duration(r.duration),
            "ranking": r.ranking,
            "state_rank": r.state_rank,
            "district_rank": r.district_rank,
            "global_rank": r.global_rank,
        })
    out.sort(key=lambda item: (item["global_rank"], item["student_exam_id"]))
    return out
