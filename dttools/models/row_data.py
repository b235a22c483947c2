from __future__ import annotations

from dataclasses import dataclass, field

from .cell import EMPTY, Cell

"""RowData model: one data row of a source sheet.

Cells are keyed by 1-based source column index. Columns that are blank in the
source are simply absent from the mapping.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single source row after cell tagging.

    The row_number refers to the original Excel row number (header = row 1,
    first data row = row 2).
    """
    row_number: int  # Excel 行番号
    cells: dict[int, Cell] = field(default_factory=dict)  # 1-based 列番号 -> Cell

    def get(self, column: int) -> Cell:
        return self.cells.get(column, EMPTY)
