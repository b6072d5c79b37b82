import pandas as pd
from io import BytesIO
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill


OPTION_LETTERS = "ABCDEFGH"
OPTION_COLUMNS = [f"option_{letter}" for letter in OPTION_LETTERS]

REQUIRED_COLUMNS = [
    "question_text",
    "question_type",
    "difficulty",
    "marks",
    "explanation",
    "correct_option",
]

TEMPLATE_HEADERS = REQUIRED_COLUMNS[:5] + OPTION_COLUMNS + ["correct_option"]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_question_template() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Questions Template"
    ws.append(TEMPLATE_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color="E6F3FF", end_color="E6F3FF", fill_type="solid")

    # sample MCQ row
    ws.append(["What is 2 + 2?", "mcq", "easy", 1, "Basic arithmetic.", "3", "4", "5", "6", "", "", "", "", "B"])
    # sample descriptive row
    ws.append([
        "Explain Newton's second law in one or two lines.", "descriptive", "medium", 5,
        "Mention F = m·a and its implications.", "", "", "", "", "", "", "", "", "",
    ])

    for column in ws.columns:
        width = max(len(str(c.value or "")) for c in column)
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def parse_question_sheet(file):
    """Read a filled question template into dicts shaped like QuestionData.

    Raises KeyError with the first missing column name so the router can
    answer 400 with a helpful message.
    """
    df = pd.read_excel(file, dtype=str)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(missing[0])

    def text(value):
        return str(value).strip() if pd.notna(value) else ""

    questions = []
    for _, row in df.iterrows():
        if not text(row["question_text"]):
            continue

        correct = text(row["correct_option"]).upper()
        options = []
        for letter, column in zip(OPTION_LETTERS, OPTION_COLUMNS):
            value = text(row.get(column))
            if value:
                options.append({"option_text": value, "is_correct": letter == correct})

        marks = text(row["marks"])
        q = {
            "question_text": text(row["question_text"]),
            "question_type": text(row["question_type"]).lower(),
            "difficulty": text(row["difficulty"]),
            "marks": int(float(marks)) if marks else 0,
            "explanation": text(row["explanation"]) or None,
            "options": options,
        }
        questions.append(q)

    return questions
