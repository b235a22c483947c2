from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from openpyxl.styles import PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import FormatFault, MissingCellError, MissingSheetError
from ..excel.reader import load_workbook_for_edit
from ..excel.writer import output_path_for, save_workbook, solid_fill
from ..logging.error_log import FaultLogBuffer
from ..models.processing_result import RunResult
from ..models.profile import VocNmhcProfile

"""VOC/NMHC (dtEEMCG) sheet renamer and cell editor.

The workbook is edited in place (openpyxl keeps all other sheets, styles and
formulas) and saved under a new name:

1. rename the instrument sheets to their canonical names
2. plan the edits for each renamed sheet from its values (pure)
3. write the changed cells, highlighting the ones that lost an annotation
"""

__all__ = [
    "CellEdit",
    "display_text",
    "rename_sheets",
    "plan_edits",
    "apply_edits",
    "process",
]

logger = logging.getLogger(__name__)

_PARENS_RE = re.compile(r"\([^)]*\)")


@dataclass(frozen=True)
class CellEdit:
    row: int
    column: int
    value: str
    highlight: bool = False

    @property
    def coordinate(self) -> str:
        return f"{get_column_letter(self.column)}{self.row}"


def display_text(value: Any) -> str:
    """Text of a cell value as shown to the label/sentinel rules."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return str(value)


def rename_sheets(wb: Workbook, profile: VocNmhcProfile) -> list[tuple[str, str]]:
    """Rename the instrument sheets; returns (old, new) pairs.

    Raises:
        MissingSheetError: none of the expected sheets is present
        FormatFault: the canonical name is already taken
    """
    renamed: list[tuple[str, str]] = []
    for old, new in profile.sheet_renames.items():
        if old not in wb.sheetnames:
            continue
        if new in wb.sheetnames:
            raise FormatFault(f"cannot rename sheet '{old}': sheet '{new}' already exists")
        wb[old].title = new
        logger.info(f"sheet renamed: '{old}' -> '{new}'")
        renamed.append((old, new))
    if not renamed:
        raise MissingSheetError(
            f"none of the expected sheets {list(profile.sheet_renames)} found "
            f"(workbook sheets: {wb.sheetnames})"
        )
    return renamed


def plan_edits(grid: Sequence[Sequence[Any]], sheet_name: str, profile: VocNmhcProfile) -> list[CellEdit]:
    """Compute the cell edits for one sheet.

    grid[0][0] is cell A1. Only cells whose value actually changes are
    returned. Formula cells are never touched.

    Raises:
        MissingCellError: a cell-located rule for this sheet points outside
            the sheet's used range
    """
    height = len(grid)
    width = max((len(r) for r in grid), default=0)

    def value_at(row: int, col: int) -> Any:
        if 1 <= row <= height and 1 <= col <= len(grid[row - 1]):
            return grid[row - 1][col - 1]
        return None

    located = {}
    for rule in profile.cell_replacements:
        if rule.sheet != sheet_name:
            continue
        if rule.row > height or rule.column > width:
            raise MissingCellError(f"sheet '{sheet_name}' has no cell {rule.cell}")
        located[(rule.row, rule.column)] = rule

    # 3 行目の因子コードが一致する列だけ -999 を書き換える
    tags = [t for t in profile.sentinel_tags if display_text(value_at(t.code_row, t.column_index)) == t.code]

    edits: list[CellEdit] = []
    for row in range(1, height + 1):
        for col in range(1, width + 1):
            raw = value_at(row, col)
            original = display_text(raw)
            if not original or (isinstance(raw, str) and raw.startswith("=")):
                continue
            value = original
            for rep in profile.replacements:
                if rep.find in value:
                    value = value.replace(rep.find, rep.replace)

            rule = located.get((row, col))
            if rule is not None and value == rule.find:
                value = rule.replace

            for tag in tags:
                if col == tag.column_index and row >= tag.start_row and tag.marker in value:
                    value = tag.replacement
                    break

            highlight = False
            if row >= profile.strip_parentheses_from_row and _PARENS_RE.search(value):
                value = _PARENS_RE.sub("", value)
                highlight = True

            if value != original:
                edits.append(CellEdit(row=row, column=col, value=value.strip(), highlight=highlight))
    return edits


def apply_edits(ws: Worksheet, edits: Sequence[CellEdit], highlight: PatternFill) -> None:
    for edit in edits:
        cell = ws.cell(row=edit.row, column=edit.column)
        cell.value = edit.value
        if edit.highlight:
            cell.fill = highlight


def process(
    input_path: Path,
    profile: VocNmhcProfile,
    *,
    fault_log: FaultLogBuffer,
    workdir: Path | None = None,
) -> RunResult:
    """Rename and correct the instrument sheets of one VOC/NMHC export."""
    start_time = datetime.now(UTC)

    wb = load_workbook_for_edit(input_path)
    renamed = rename_sheets(wb, profile)
    highlight = solid_fill(profile.highlight_fill)

    edited = 0
    for _, name in renamed:
        ws = wb[name]
        grid = [list(r) for r in ws.iter_rows(values_only=True)]
        edits = plan_edits(grid, name, profile)
        apply_edits(ws, edits, highlight)
        edited += len(edits)
        logger.info(
            f"sheet '{name}': {len(edits)} cells edited "
            f"({sum(1 for e in edits if e.highlight)} highlighted)"
        )

    output_path = save_workbook(wb, output_path_for(input_path))
    return RunResult(
        profile=profile.name,
        input_path=input_path,
        output_path=output_path,
        start_time=start_time,
        end_time=datetime.now(UTC),
        edited_cells=edited,
        renamed_sheets=len(renamed),
    )
