from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status
from fastapi.responses import Response
from typing import List
import os
import logging

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session
from ..dependencies import require_permission
from ..models.question_model import Question, QuestionOption
from ..schemas.question_schema import QuestionData, QuestionRead
from ..services.exam_service import load_exam
from ..services.question_service import (
    load_question, add_question, replace_options, options_by_question, questions_with_options,
)
from ..services.excel_service import (
    build_question_template, parse_question_sheet, TEMPLATE_HEADERS, XLSX_MEDIA_TYPE,
)
from ..services.pdf_service import render_answer_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams/{exam_id}", tags=["Questions"])

can_read = require_permission("exams.read")
can_write = require_permission("exams.write")

ALLOWED_SHEET_EXTENSIONS = {".xlsx", ".xlsm", ".xls", ".xlsb", ".ods"}


async def _exam_or_404(session: AsyncSession, exam_id: int):
    exam = await load_exam(session, exam_id)
    if not exam:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Exam not found")
    return exam


@router.get("/questions", response_model=List[QuestionRead], dependencies=[Depends(can_read)])
async def list_questions(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    await _exam_or_404(session, exam_id)
    return await questions_with_options(session, exam_id)


@router.post("/questions", dependencies=[Depends(can_write)])
async def create_question(exam_id: int, payload: QuestionData, session: AsyncSession = Depends(get_async_session)):
    await _exam_or_404(session, exam_id)
    try:
        question = await add_question(session, exam_id, payload)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to add question to exam %s", exam_id)
        raise
    return {"message": "Question added", "question_id": question.question_id}


# Template download sits before /questions/{question_id} routes
@router.get("/questions/template.xlsx", dependencies=[Depends(can_read)])
async def download_template(exam_id: int):
    return Response(
        content=build_question_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename=questions_template_exam_{exam_id}.xlsx"},
    )


# Upload Excel & Preview
@router.post("/questions/bulk-upload", dependencies=[Depends(can_write)])
async def upload_excel(exam_id: int, file: UploadFile = File(...)):
    #  check file extension and return parsed preview
    file_extension = os.path.splitext(file.filename or "")[1].lower()
    if file_extension not in ALLOWED_SHEET_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file extension. Only {sorted(ALLOWED_SHEET_EXTENSIONS)} are allowed.",
        )
    try:
        preview = parse_question_sheet(file.file)
    except KeyError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Column not found: {e}. File must contain these columns {TEMPLATE_HEADERS}. "
                "Columns are case sensitive; download the template if unsure."
            ),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Could not read spreadsheet: {e}")

    return {"total": len(preview), "preview": preview}


# Confirm Import
@router.post("/questions/confirm-import", dependencies=[Depends(can_write)])
async def confirm_import(
    exam_id: int,
    questions: List[QuestionData],
    session: AsyncSession = Depends(get_async_session),
):
    # all rows go in together or none do
    await _exam_or_404(session, exam_id)
    try:
        for q in questions:
            await add_question(session, exam_id, q)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Bulk import into exam %s failed", exam_id)
        raise

    logger.info("Imported %d questions into exam %s", len(questions), exam_id)
    return {"message": f"{len(questions)} questions saved successfully!", "total": len(questions)}


@router.put("/questions/{question_id}", dependencies=[Depends(can_write)])
async def update_question(
    exam_id: int, question_id: int, payload: QuestionData, session: AsyncSession = Depends(get_async_session)
):
    question = await load_question(session, exam_id, question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")

    question.question_text = payload.question_text
    question.question_type = payload.question_type
    question.difficulty = payload.difficulty
    question.marks = payload.marks
    question.explanation = payload.explanation
    try:
        await replace_options(session, question.question_id, payload.question_type, payload.options)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to update question %s", question_id)
        raise
    return {"message": "Question updated"}


@router.delete("/questions/{question_id}", dependencies=[Depends(can_write)])
async def delete_question(exam_id: int, question_id: int, session: AsyncSession = Depends(get_async_session)):
    question = await load_question(session, exam_id, question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    try:
        await session.execute(delete(QuestionOption).where(QuestionOption.question_id == question_id))
        await session.delete(question)
        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Failed to delete question %s", question_id)
        raise
    return {"message": "Question deleted"}


@router.get("/answer-key.pdf", dependencies=[Depends(can_read)])
async def download_answer_key(exam_id: int, session: AsyncSession = Depends(get_async_session)):
    exam = await _exam_or_404(session, exam_id)
    res = await session.execute(
        select(Question).where(Question.exam_id == exam_id).order_by(Question.question_id)
    )
    questions = res.scalars().all()
    options = await options_by_question(session, [q.question_id for q in questions])

    pdf = render_answer_key(exam, questions, options)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="exam_{exam_id}_answer_key.pdf"'},
    )
