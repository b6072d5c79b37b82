import logging
from typing import Dict, Iterable, List, Optional
from datetime import date

from sqlalchemy import select, delete, func, distinct
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.exam_model import Exam, ExamSubject
from ..models.question_model import Question, QuestionOption
from ..models.student_exam_model import StudentExam, StudentExamSubject

logger = logging.getLogger(__name__)

DUPLICATE_SET_MESSAGE = "This set already exists for this exam group."


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique/primary key clash (not an FK or NOT NULL failure)."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    text = str(orig or exc).lower()
    return "unique" in text or "duplicate" in text


async def load_exam(session: AsyncSession, exam_id: int) -> Optional[Exam]:
    res = await session.execute(select(Exam).where(Exam.exam_id == exam_id))
    return res.scalar_one_or_none()


async def set_exists(
    session: AsyncSession,
    title: str,
    start_date: date,
    category: Optional[str],
    set_type: Optional[str],
    exclude_exam_id: Optional[int] = None,
) -> bool:
    # fast pre-check; the unique index is what actually guards concurrent writers
    stmt = select(Exam.exam_id).where(
        Exam.title == title,
        Exam.start_date == start_date,
        Exam.category == category,
        Exam.set_type == set_type,
    )
    if exclude_exam_id is not None:
        stmt = stmt.where(Exam.exam_id != exclude_exam_id)
    res = await session.execute(stmt.limit(1))
    return res.first() is not None


async def subjects_by_exam(session: AsyncSession, exam_ids: Iterable[int]) -> Dict[int, List[ExamSubject]]:
    exam_ids = list(exam_ids)
    out: Dict[int, List[ExamSubject]] = {eid: [] for eid in exam_ids}
    if not exam_ids:
        return out
    res = await session.execute(
        select(ExamSubject).where(ExamSubject.exam_id.in_(exam_ids)).order_by(ExamSubject.exam_subject_id)
    )
    for row in res.scalars().all():
        out.setdefault(row.exam_id, []).append(row)
    return out


async def sync_exam_subjects(session: AsyncSession, exam_id: int, subjects) -> None:
    """Make the exam's subject rows match `subjects` exactly.

    Rows are matched by case-insensitive subject name. Matched rows keep their
    exam_subject_id (marks and spelling are updated), unmatched rows are
    deleted and new names are inserted.
    """
    res = await session.execute(select(ExamSubject).where(ExamSubject.exam_id == exam_id))
    existing: Dict[str, ExamSubject] = {}
    for row in res.scalars().all():
        key = row.subject.strip().lower()
        if key in existing:
            await session.delete(row)
        else:
            existing[key] = row

    wanted = {s.subject.strip().lower(): s for s in subjects}

    for key, row in existing.items():
        if key not in wanted:
            await session.delete(row)

    for key, s in wanted.items():
        row = existing.get(key)
        if row is not None:
            row.subject = s.subject
            row.marks = s.marks
        else:
            session.add(ExamSubject(exam_id=exam_id, subject=s.subject, marks=s.marks))

    await session.flush()


async def copy_exam_subjects(session: AsyncSession, source_exam_id: int, target_exam_id: int) -> None:
    res = await session.execute(
        select(ExamSubject.subject, ExamSubject.marks)
        .where(ExamSubject.exam_id == source_exam_id)
        .order_by(ExamSubject.exam_subject_id)
    )
    for subject, marks in res.all():
        session.add(ExamSubject(exam_id=target_exam_id, subject=subject, marks=marks))
    await session.flush()


async def delete_exam_tree(session: AsyncSession, exam_id: int) -> None:
    # children first so engines without FK cascades end up clean too
    question_ids = select(Question.question_id).where(Question.exam_id == exam_id)
    attempt_ids = select(StudentExam.student_exam_id).where(StudentExam.exam_id == exam_id)

    await session.execute(delete(QuestionOption).where(QuestionOption.question_id.in_(question_ids)))
    await session.execute(delete(Question).where(Question.exam_id == exam_id))
    await session.execute(delete(StudentExamSubject).where(StudentExamSubject.student_exam_id.in_(attempt_ids)))
    await session.execute(delete(StudentExam).where(StudentExam.exam_id == exam_id))
    await session.execute(delete(ExamSubject).where(ExamSubject.exam_id == exam_id))
    await session.execute(delete(Exam).where(Exam.exam_id == exam_id))


async def list_exams(
    session: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[str] = None,
) -> List[dict]:
    subject_count = (
        select(func.count(ExamSubject.exam_subject_id))
        .where(ExamSubject.exam_id == Exam.exam_id)
        .correlate(Exam)
        .scalar_subquery()
    )
    participants = (
        select(func.count(distinct(StudentExam.user_id)))
        .where(StudentExam.exam_id == Exam.exam_id)
        .correlate(Exam)
        .scalar_subquery()
    )
    question_count = (
        select(func.count(Question.question_id))
        .where(Question.exam_id == Exam.exam_id)
        .correlate(Exam)
        .scalar_subquery()
    )

    stmt = select(
        Exam,
        subject_count.label("subject_count"),
        participants.label("participants_count"),
        question_count.label("questions_count"),
    )
    if start_date:
        stmt = stmt.where(Exam.start_date >= start_date)
    if end_date:
        stmt = stmt.where(Exam.start_date <= end_date)
    if category and category != "all":
        stmt = stmt.where(Exam.category == category)
    stmt = stmt.order_by(Exam.created_at.desc(), Exam.exam_id.desc())

    rows = (await session.execute(stmt)).all()
    subjects = await subjects_by_exam(session, [r.Exam.exam_id for r in rows])

    out = []
    for r in rows:
        item = _exam_to_read_dict(r.Exam)
        item["subjects"] = sorted({s.subject for s in subjects.get(r.Exam.exam_id, [])})
        item["subject_count"] = r.subject_count or 0
        item["participants_count"] = r.participants_count or 0
        item["questions_count"] = r.questions_count or 0
        out.append(item)
    return out


async def exam_group_sets(session: AsyncSession, exam: Exam) -> dict:
    res = await session.execute(
        select(Exam.exam_id, Exam.set_type)
        .where(
            Exam.title == exam.title,
            Exam.start_date == exam.start_date,
            Exam.category == exam.category,
        )
        .order_by(Exam.set_type)
    )
    members = [row for row in res.all() if row.set_type]
    return {
        "group": {"title": exam.title, "start_date": exam.start_date, "category": exam.category},
        "sets": [row.set_type for row in members],
        "count": len(members),
        "exams": [{"exam_id": row.exam_id, "set_type": row.set_type} for row in members],
    }


def _exam_to_read_dict(exam: Exam) -> dict:
    return {
        "exam_id": exam.exam_id,
        "title": exam.title,
        "exam_type": exam.exam_type,
        "exam_format": exam.exam_format,
        "total_marks": exam.total_marks,
        "duration": exam.duration,
        "start_date": exam.start_date,
        "start_time": exam.start_time,
        "venue": exam.venue,
        "status": exam.status,
        "description": exam.description,
        "category": exam.category,
        "set_type": exam.set_type,
        "created_at": exam.created_at,
        "updated_at": exam.updated_at,
    }
