import io
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import letter

from ..models.question_model import MCQ


def _letter(index: int) -> str:
    return chr(65 + index)


def correct_label(options) -> str:
    for idx, opt in enumerate(options):
        if opt.is_correct:
            return _letter(idx)
    return "-"


def render_answer_key(exam, questions, options_by_question) -> bytes:
    buffer = io.BytesIO()
    p = canvas.Canvas(buffer, pagesize=letter)
    width, height = letter
    margin = 50

    p.setFont("Helvetica-Bold", 18)
    p.drawCentredString(width / 2, height - margin, f"{exam.title} - Answer Key")

    y_pos = height - margin - 30
    p.setFont("Helvetica", 10)
    for line in (
        f"Exam Type: {exam.exam_type or '-'}",
        f"Format: {exam.exam_format or '-'}",
        f"Total Marks: {exam.total_marks or 0} | Duration: {exam.duration or 0} min",
        f"Start: {exam.start_date or '-'} {exam.start_time or ''}",
    ):
        p.drawString(margin, y_pos, line)
        y_pos -= 14

    for number, q in enumerate(questions, start=1):
        if y_pos < margin + 60:
            p.showPage()
            y_pos = height - margin

        y_pos -= 10
        p.setFont("Helvetica-Bold", 12)
        p.drawString(margin, y_pos, f"Q{number}. {q.question_text}"[:110])
        y_pos -= 16

        p.setFont("Helvetica", 10)
        if q.question_type == MCQ:
            p.drawString(margin, y_pos, f"Type: MCQ  |  Marks: {q.marks or 0}  |  Difficulty: {q.difficulty or '-'}")
            y_pos -= 14
            p.drawString(margin, y_pos, f"Answer: {correct_label(options_by_question.get(q.question_id, []))}")
        else:
            p.drawString(
                margin, y_pos,
                f"Type: {q.question_type.upper()}  |  Marks: {q.marks or 0}  |  Difficulty: {q.difficulty or '-'}",
            )
            y_pos -= 14
            p.drawString(margin, y_pos, "Answer: - (no fixed key)")

        y_pos -= 8
        p.setStrokeColorRGB(0.8, 0.8, 0.8)
        p.line(margin, y_pos, width - margin, y_pos)

    p.save()
    return buffer.getvalue()
