from openpyxl import Workbook
from io import BytesIO
import pytest

from examhub.services.excel_service import build_question_template, parse_question_sheet, TEMPLATE_HEADERS


def bytesio_from_workbook(wb: Workbook) -> BytesIO:
    f = BytesIO()
    wb.save(f)
    f.seek(0)
    return f


def test_upload_wrong_file_format():
    # Non-Excel bytes should cause pandas.read_excel to raise an error
    bad_file = BytesIO(b"not-an-excel-file")
    with pytest.raises(Exception):
        parse_question_sheet(bad_file)


def test_missing_columns():
    wb = Workbook()
    ws = wb.active
    ws.append(["question_text", "question_type"])
    ws.append(["What is 2 + 2?", "mcq"])
    f = bytesio_from_workbook(wb)

    with pytest.raises(KeyError):
        parse_question_sheet(f)


def test_template_parses_back_into_questions():
    result = parse_question_sheet(BytesIO(build_question_template()))

    assert len(result) == 2
    mcq, descriptive = result

    assert mcq["question_type"] == "mcq"
    assert mcq["marks"] == 1
    assert [o["option_text"] for o in mcq["options"]] == ["3", "4", "5", "6"]
    assert [o["is_correct"] for o in mcq["options"]] == [False, True, False, False]

    assert descriptive["question_type"] == "descriptive"
    assert descriptive["marks"] == 5
    assert descriptive["options"] == []


def test_blank_rows_are_skipped_and_type_lowercased():
    wb = Workbook()
    ws = wb.active
    ws.append(TEMPLATE_HEADERS)
    ws.append(["Speed of light?", "MCQ", "hard", 4, None, "3e8 m/s", "3e6 m/s", None, None, None, None, None, None, "a"])
    ws.append([None] * len(TEMPLATE_HEADERS))
    ws.append(["Define inertia.", "Descriptive", "easy", None, None, None, None, None, None, None, None, None, None, None])

    result = parse_question_sheet(bytesio_from_workbook(wb))

    assert len(result) == 2
    assert result[0]["question_type"] == "mcq"
    assert result[0]["options"][0] == {"option_text": "3e8 m/s", "is_correct": True}
    assert result[0]["explanation"] is None
    assert result[1]["question_type"] == "descriptive"
    assert result[1]["marks"] == 0
