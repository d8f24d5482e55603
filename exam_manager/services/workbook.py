"""
openpyxl helpers shared by export, import and template generation.
"""

import enum
from collections.abc import Iterable, Sequence
from datetime import datetime
from io import BytesIO
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from exam_manager.db.models.enums import FileCategory

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
DELETED_FONT = Font(color="FF0000")


def new_sheet(title: str, headers: Sequence[str]) -> tuple[Workbook, Worksheet]:
    """Workbook with a single sheet and a bold, grey header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    ws.freeze_panes = "A2"
    return wb, ws


def append_row(ws: Worksheet, values: Sequence[Any], font: Font | None = None) -> None:
    ws.append([_cell_value(v) for v in values])
    if font is not None:
        for cell in ws[ws.max_row]:
            cell.font = font


def autosize(ws: Worksheet, max_width: int = 60) -> None:
    for col_cells in ws.columns:
        width = max((len(str(c.value)) for c in col_cells if c.value is not None), default=8)
        ws.column_dimensions[get_column_letter(col_cells[0].column)].width = min(width + 2, max_width)


def to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def read_rows(content: bytes) -> Iterable[tuple[int, tuple[Any, ...]]]:
    """(row number, values) for every non-empty row after the header of the first sheet."""
    wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        for row_number, values in enumerate(ws.iter_rows(min_row=2, values_only=True), start=2):
            if values and any(v not in (None, "") for v in values):
                yield row_number, tuple(values)
    finally:
        wb.close()


def _cell_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is not None:
        # Excel has no timezone support
        return value.replace(tzinfo=None)
    return value


class DataCategory(str, enum.Enum):
    """Entity sets that can be exported, imported or templated; values are URL slugs."""

    EXAMINERS = "examiners"
    PROFESSIONS = "professions"
    INSTITUTIONS = "institutions"
    EXAM_TYPES = "exam-types"
    EXAMS = "exams"

    @property
    def file_category(self) -> FileCategory:
        return _FILE_CATEGORIES[self]

    @property
    def entity_name(self) -> str:
        """Name used in generated file names, e.g. ``ExamTypes``."""
        return "".join(part.capitalize() for part in self.value.split("-"))


_FILE_CATEGORIES = {
    DataCategory.EXAMINERS: FileCategory.EXAMINER,
    DataCategory.PROFESSIONS: FileCategory.PROFESSION,
    DataCategory.INSTITUTIONS: FileCategory.INSTITUTION,
    DataCategory.EXAM_TYPES: FileCategory.EXAM_TYPE,
    DataCategory.EXAMS: FileCategory.EXAM,
}
