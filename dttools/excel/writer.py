from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import IOFault
from ..models.cell import Cell
from ..models.profile import ReportTemplate

"""Excel writer (openpyxl).

Builds the templated report sheet, writes mapped data rows and saves
workbooks. Nothing here touches cell values beyond placing them; all data
rules live in dttools.services.
"""

__all__ = [
    "solid_fill",
    "output_path_for",
    "new_report",
    "write_data_row",
    "apply_column_widths",
    "save_workbook",
]


def solid_fill(argb: str) -> PatternFill:
    return PatternFill(start_color=argb, end_color=argb, fill_type="solid")


def output_path_for(input_path: Path) -> Path:
    """processed_<name> next to the input file."""
    return input_path.with_name(f"processed_{input_path.name}")


def new_report(template: ReportTemplate, header_text: str) -> tuple[Workbook, Worksheet]:
    """Create the report workbook with notice, boilerplate and header rows."""
    wb = Workbook()
    ws = wb.active
    ws.title = template.sheet_title

    notice_fill = solid_fill(template.notice_fill)
    ws["A1"] = template.notice
    ws["A1"].fill = notice_fill
    ws["A2"] = header_text
    ws["A2"].fill = notice_fill

    header_fill = solid_fill(template.header_fill)
    for offset, values in enumerate(template.header_rows):
        row = template.header_start_row + offset
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.fill = header_fill
    return wb, ws


def write_data_row(
    ws: Worksheet,
    row: int,
    cells: Sequence[Cell],
    fills: dict[int, PatternFill] | None = None,
) -> None:
    """Write one mapped output row (cells[0] is column A).

    Empty cells are left blank rather than written as empty strings.
    """
    for col, cell in enumerate(cells, start=1):
        target = ws.cell(row=row, column=col)
        target.value = None if cell.is_empty else cell.value
        if fills and col in fills:
            target.fill = fills[col]


def apply_column_widths(ws: Worksheet, template: ReportTemplate) -> None:
    if template.default_width is not None:
        for col in range(1, template.width + 1):
            ws.column_dimensions[get_column_letter(col)].width = template.default_width
    for letter, width in template.column_widths.items():
        ws.column_dimensions[letter].width = width


def save_workbook(wb: Workbook, path: Path) -> Path:
    """Save through a temporary file in the target directory.

    The output either appears complete or not at all; a failed save leaves
    neither a partial output nor the temporary file behind.
    """
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.stem}-", suffix=path.suffix, delete=False
        ) as tmp:
            temp_path = Path(tmp.name)
    except OSError as e:
        raise IOFault(f"cannot save workbook {path}: {e}") from e
    try:
        wb.save(temp_path)
        os.replace(temp_path, path)
    except OSError as e:
        raise IOFault(f"cannot save workbook {path}: {e}") from e
    finally:
        temp_path.unlink(missing_ok=True)
    return path
