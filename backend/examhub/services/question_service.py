from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.question_model import Question, QuestionOption, MCQ


async def load_question(session: AsyncSession, exam_id: int, question_id: int) -> Optional[Question]:
    res = await session.execute(
        select(Question).where(Question.question_id == question_id, Question.exam_id == exam_id)
    )
    return res.scalar_one_or_none()


async def add_question(session: AsyncSession, exam_id: int, data) -> Question:
    question = Question(
        exam_id=exam_id,
        question_text=data.question_text,
        question_type=data.question_type,
        difficulty=data.difficulty,
        marks=data.marks,
        explanation=data.explanation,
    )
    session.add(question)
    await session.flush()
    await replace_options(session, question.question_id, data.question_type, data.options)
    return question


async def replace_options(session: AsyncSession, question_id: int, question_type: str, options) -> None:
    # options are always rewritten in full; only MCQ questions keep any
    await session.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
    if question_type == MCQ:
        for idx, opt in enumerate(options or []):
            session.add(
                QuestionOption(
                    question_id=question_id,
                    option_text=opt.option_text or "",
                    is_correct=bool(opt.is_correct),
                    option_order=idx,
                )
            )
    await session.flush()


async def options_by_question(session: AsyncSession, question_ids: Iterable[int]) -> Dict[int, List[QuestionOption]]:
    question_ids = list(question_ids)
    out: Dict[int, List[QuestionOption]] = {qid: [] for qid in question_ids}
    if not question_ids:
        return out
    res = await session.execute(
        select(QuestionOption)
        .where(QuestionOption.question_id.in_(question_ids))
        .order_by(QuestionOption.question_id, QuestionOption.option_order)
    )
    for opt in res.scalars().all():
        out.setdefault(opt.question_id, []).append(opt)
    return out


async def questions_with_options(session: AsyncSession, exam_id: int) -> List[dict]:
    res = await session.execute(
        select(Question).where(Question.exam_id == exam_id).order_by(Question.question_id)
    )
    questions = res.scalars().all()
    options = await options_by_question(session, [q.question_id for q in questions if q.question_type == MCQ])
    return [_question_to_dict(q, options.get(q.question_id, [])) for q in questions]


def _question_to_dict(q: Question, options: List[QuestionOption]) -> dict:
    return {
        "question_id": q.question_id,
        "exam_id": q.exam_id,
        "question_text": q.question_text,
        "question_type": q.question_type,
        "difficulty": q.difficulty,
        "marks": q.marks,
        "explanation": q.explanation,
        "options": [
            {
                "option_id": o.option_id,
                "option_text": o.option_text,
                "is_correct": o.is_correct,
                "option_order": o.option_order,
            }
            for o in options
        ],
    }
