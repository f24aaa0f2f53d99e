"""Unit tests for spreadsheet parsing and xlsx exports."""

import io
from datetime import date, datetime

import pytest
from openpyxl import Workbook, load_workbook

from app.core.exceptions import ValidationError
from app.models.enums import EnrollmentStatus
from app.services.spreadsheet_service import (
    ATTENDANCE_EXPORT_COLUMNS,
    COURSE_TEMPLATE_COLUMNS,
    ENROLLMENT_EXPORT_COLUMNS,
    SpreadsheetService,
)


def _xlsx(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_parse_csv_rows():
    content = "title,instructor,capacity\nAlgebra,Kim,20\nEssay,Lee,\n".encode("utf-8")
    rows = SpreadsheetService.parse_file(content, "courses.csv")
    assert rows == [
        {"title": "Algebra", "instructor": "Kim", "capacity": "20"},
        {"title": "Essay", "instructor": "Lee", "capacity": ""},
    ]


def test_parse_csv_strips_byte_order_mark():
    content = "\ufeff강좌명,강사\n수학,김선생\n".encode("utf-8")
    rows = SpreadsheetService.parse_file(content, "courses.CSV")
    assert rows == [{"강좌명": "수학", "강사": "김선생"}]


def test_parse_csv_skips_blank_rows():
    content = b"title,instructor\n,\nAlgebra,Kim\n\n"
    rows = SpreadsheetService.parse_file(content, "courses.csv")
    assert rows == [{"title": "Algebra", "instructor": "Kim"}]


def test_parse_csv_rejects_other_encodings():
    content = "title\n수학\n".encode("euc-kr")
    with pytest.raises(ValidationError):
        SpreadsheetService.parse_file(content, "courses.csv")


def test_parse_xlsx_renders_numbers_as_text():
    content = _xlsx([["title", "capacity", "startPeriod"], ["Algebra", 20, 3.0], [None, None, None]])
    rows = SpreadsheetService.parse_file(content, "courses.xlsx")
    assert rows == [{"title": "Algebra", "capacity": "20", "startPeriod": "3"}]


def test_parse_rejects_unsupported_extension():
    with pytest.raises(ValidationError) as exc_info:
        SpreadsheetService.parse_file(b"anything", "courses.pdf")
    assert exc_info.value.context["filename"] == "courses.pdf"


def test_parse_rejects_corrupt_xlsx():
    with pytest.raises(ValidationError):
        SpreadsheetService.parse_file(b"not a zip archive", "courses.xlsx")


def test_export_rows_writes_header_and_values():
    rows = [
        {
            "student_id": "s-001",
            "course": "Algebra",
            "status": EnrollmentStatus.APPROVED,
            "created_at": datetime(2026, 12, 1, 9, 30),
            "decided_at": None,
            "rejection_reason": None,
        }
    ]
    content = SpreadsheetService.export_rows(rows, ENROLLMENT_EXPORT_COLUMNS, sheet_name="enrollments")

    workbook = load_workbook(io.BytesIO(content))
    sheet = workbook["enrollments"]
    values = list(sheet.iter_rows(values_only=True))
    assert values[0] == tuple(column.header for column in ENROLLMENT_EXPORT_COLUMNS)
    assert values[1][:4] == ("s-001", "Algebra", "approved", "2026-12-01 09:30:00")
    assert sheet["A1"].font.bold


def test_exported_sheet_parses_back():
    rows = [{"number": 1, "student_id": "s-001", "session_date": date(2026, 12, 2), "status": "present", "note": ""}]
    content = SpreadsheetService.export_rows(rows, ATTENDANCE_EXPORT_COLUMNS)
    parsed = SpreadsheetService.parse_file(content, "attendance.xlsx")
    assert parsed[0]["날짜"] == "2026-12-02"
    assert parsed[0]["번호"] == "1"


def test_template_has_example_row():
    content = SpreadsheetService.template(COURSE_TEMPLATE_COLUMNS)
    parsed = SpreadsheetService.parse_file(content, "template.xlsx")
    assert len(parsed) == 1
    assert parsed[0]["시간"] == "월 1~2, 수 3~4"
