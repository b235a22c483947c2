from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

"""Cell model: a tagged spreadsheet value.

Cells are built from raw values delivered by pandas/openpyxl. pandas hands
back numpy scalars (np.float64, np.int64) and Timestamp/NaT, so tagging has to
recognise those alongside the builtin types.
"""

__all__ = [
    "CellKind",
    "Cell",
    "EMPTY",
]


class CellKind(Enum):
    """Kinds of cell content.

    - EMPTY: no value (None, NaN, NaT, blank text)
    - NUMERIC: int or float
    - TEXT: any string
    - DATETIME: datetime, date or time-of-day
    """
    EMPTY = "empty"
    NUMERIC = "numeric"
    TEXT = "text"
    DATETIME = "datetime"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any = None  # EMPTY のときは常に None

    @staticmethod
    def numeric(value: int | float) -> Cell:
        return Cell(CellKind.NUMERIC, value)

    @staticmethod
    def text(value: str) -> Cell:
        return Cell(CellKind.TEXT, value)

    @staticmethod
    def from_raw(value: Any) -> Cell:
        """Tag a raw value read from a workbook."""
        if value is None:
            return EMPTY
        if isinstance(value, bool | np.bool_):
            # 真偽値は数値扱いしない
            return Cell(CellKind.TEXT, "true" if value else "false")
        if isinstance(value, datetime | date | time):
            if value is pd.NaT:
                return EMPTY
            if isinstance(value, pd.Timestamp):
                value = value.to_pydatetime()
            return Cell(CellKind.DATETIME, value)
        if isinstance(value, int | np.integer):
            return Cell(CellKind.NUMERIC, int(value))
        if isinstance(value, float | np.floating):
            if np.isnan(value):
                return EMPTY
            return Cell(CellKind.NUMERIC, float(value))
        if isinstance(value, str):
            if value.strip() == "":
                return EMPTY
            return Cell(CellKind.TEXT, value)
        if pd.isna(value):
            return EMPTY
        return Cell(CellKind.TEXT, str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def as_text(self) -> str:
        """Textual content of the cell as the rules engine sees it."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMERIC:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.kind is CellKind.DATETIME:
            return self.value.isoformat()
        return str(self.value)


EMPTY = Cell(CellKind.EMPTY)
