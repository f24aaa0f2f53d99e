"""Spreadsheet Service - xlsx/csv reading and xlsx exports"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Sequence
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SUPPORTED_EXTENSIONS = (".xlsx", ".csv")

_MIN_COLUMN_WIDTH = 10


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    header: str
    example: str = ""


COURSE_EXPORT_COLUMNS = [
    ColumnSpec("title", "강좌명"),
    ColumnSpec("instructor", "강사"),
    ColumnSpec("category", "카테고리"),
    ColumnSpec("level", "난이도"),
    ColumnSpec("schedule", "시간"),
    ColumnSpec("room", "강의실"),
    ColumnSpec("capacity", "정원"),
    ColumnSpec("enrolled", "신청수"),
]

COURSE_TEMPLATE_COLUMNS = [
    ColumnSpec("title", "강좌명", "고등 수학 심화"),
    ColumnSpec("instructor", "강사", "김선생"),
    ColumnSpec("category", "카테고리", "수학"),
    ColumnSpec("level", "난이도", "중급"),
    ColumnSpec("schedule", "시간", "월 1~2, 수 3~4"),
    ColumnSpec("room", "강의실", "301호"),
    ColumnSpec("capacity", "정원", "20"),
    ColumnSpec("description", "설명", "고등학교 수학 심화 과정"),
]

ENROLLMENT_EXPORT_COLUMNS = [
    ColumnSpec("student_id", "학생"),
    ColumnSpec("course", "강좌"),
    ColumnSpec("status", "상태"),
    ColumnSpec("created_at", "신청일시"),
    ColumnSpec("decided_at", "처리일시"),
    ColumnSpec("rejection_reason", "반려 사유"),
]

ATTENDANCE_EXPORT_COLUMNS = [
    ColumnSpec("number", "번호"),
    ColumnSpec("student_id", "학생"),
    ColumnSpec("session_date", "날짜"),
    ColumnSpec("status", "출결"),
    ColumnSpec("note", "비고"),
]


def _cell_text(value: Any) -> str:
    """Render a cell the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _export_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return _cell_text(value)
    if hasattr(value, "value"):
        # Enum members export as their stored value
        return value.value
    return value


def _rows_from_matrix(matrix: Iterable[Sequence[Any]]) -> List[Dict[str, str]]:
    rows = iter(matrix)
    header = next(rows, None)
    if header is None:
        return []
    keys = [_cell_text(cell).strip() for cell in header]
    records = []
    for values in rows:
        cells = [_cell_text(cell) for cell in values]
        if not any(cell.strip() for cell in cells):
            continue
        record = {}
        for index, key in enumerate(keys):
            if key:
                record[key] = cells[index] if index < len(cells) else ""
        records.append(record)
    return records


def _style_header(sheet) -> None:
    for cell in sheet[1]:
        cell.fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        cell.font = Font(bold=True, color="FFFFFF")


def _save(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class SpreadsheetService:
    @staticmethod
    def parse_file(content: bytes, filename: str) -> List[Dict[str, str]]:
        """
        Read the first sheet of an upload into one dict per data row.

        The first row is the header. Empty cells become "" and blank rows
        are skipped.

        Raises:
            ValidationError: unsupported extension or unreadable file
        """
        name = (filename or "").lower()
        if name.endswith(".csv"):
            try:
                text = content.decode("utf-8-sig")
            except UnicodeDecodeError:
                raise ValidationError("CSV files must be UTF-8 encoded", filename=filename)
            return _rows_from_matrix(csv.reader(io.StringIO(text)))

        if not name.endswith(".xlsx"):
            raise ValidationError(
                f"Unsupported file type; upload one of {', '.join(SUPPORTED_EXTENSIONS)}",
                filename=filename,
            )
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
            logger.warning("Unreadable spreadsheet upload", extra={"filename": filename, "error": str(exc)})
            raise ValidationError("Could not read the spreadsheet", filename=filename)
        try:
            sheet = workbook.worksheets[0]
            return _rows_from_matrix(sheet.iter_rows(values_only=True))
        finally:
            workbook.close()

    @staticmethod
    def export_rows(
        rows: Iterable[Mapping[str, Any]],
        columns: Sequence[ColumnSpec],
        sheet_name: str = "Sheet1",
    ) -> bytes:
        """xlsx with a styled header row and columns sized to their content."""
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_name
        sheet.append([column.header for column in columns])
        _style_header(sheet)

        widths = [max(len(column.header), _MIN_COLUMN_WIDTH) for column in columns]
        for row in rows:
            values = [_export_value(row.get(column.key)) for column in columns]
            sheet.append(values)
            for index, value in enumerate(values):
                widths[index] = max(widths[index], len(str(value)))

        for index, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = width + 2
        return _save(workbook)

    @staticmethod
    def template(columns: Sequence[ColumnSpec], sheet_name: str = "양식") -> bytes:
        """Header row plus one example row."""
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_name
        sheet.append([column.header for column in columns])
        sheet.append([column.example for column in columns])
        _style_header(sheet)
        for index, column in enumerate(columns, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = max(len(column.header), 15) + 2
        return _save(workbook)
