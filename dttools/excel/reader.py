from __future__ import annotations

import zipfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from ..errors import FormatFault, IOFault, MissingSheetError
from ..models.cell import Cell
from ..models.row_data import RowData

"""Excel reader.

- read_excel_file: raw DataFrames (header=None) keyed by sheet name, via pandas
- select_sheet: pick the sheet a profile works on (name or position)
- normalize_sheet: first row = header, following rows = tagged data rows
- load_workbook_for_edit: openpyxl workbook for in-place editing (VOC/NMHC)

Read failures (missing file, not a workbook) surface as IOFault; shape
problems (no sheet, no data row) as FormatFault.
"""

__all__ = [
    "SheetData",
    "read_excel_file",
    "select_sheet",
    "normalize_sheet",
    "iter_rows",
    "load_workbook_for_edit",
]

_READ_ERRORS = (OSError, ValueError, zipfile.BadZipFile, InvalidFileException, KeyError)


@dataclass
class SheetData:
    sheet_name: str
    header: list[str]
    rows: list[RowData]  # ヘッダ以外の全データ行 (空行は除外)


def _restore_error_cells(xls: pd.ExcelFile, name: str, df: pd.DataFrame) -> None:
    """Put Excel error values (#DIV/0!, #N/A, ...) back into the frame.

    pandas' openpyxl reader turns error cells into NaN, which would make them
    indistinguishable from blank cells.
    """
    if xls.engine != "openpyxl":
        return
    for r, row in enumerate(xls.book[name].rows):
        if r >= df.shape[0]:
            break
        for c, cell in enumerate(row):
            if c < df.shape[1] and cell.data_type == "e" and pd.isna(df.iat[r, c]):
                df.iat[r, c] = cell.value


def read_excel_file(path: Path) -> dict[str, pd.DataFrame]:
    """Read an Excel file returning raw DataFrames keyed by sheet name.

    Sheets are parsed without a header so row/column positions match the
    workbook exactly. Sheet order is preserved. pandas' NA conversion is
    disabled ("N/A", "null", ... stay text and blank cells come back as "")
    so the cell rules see what the workbook holds.

    Raises:
        IOFault: the file is missing or is not a readable workbook
    """
    if not path.exists():
        raise IOFault(f"file not found: {path}")
    dfs: dict[str, pd.DataFrame] = {}
    try:
        with pd.ExcelFile(path) as xls:
            for name in xls.sheet_names:
                df = xls.parse(name, header=None, keep_default_na=False, na_values=[])
                # エラー値 (文字列) を書き戻せるよう object 列にそろえる
                df = df.astype(object)
                _restore_error_cells(xls, name, df)
                dfs[str(name)] = df
    except _READ_ERRORS as e:
        raise IOFault(f"cannot read workbook {path}: {e}") from e
    return dfs


def select_sheet(dfs: dict[str, pd.DataFrame], sheet: str | int = 0) -> tuple[str, pd.DataFrame]:
    """Return (name, frame) for a sheet given by name or 0-based position."""
    if not dfs:
        raise MissingSheetError("workbook contains no sheets")
    if isinstance(sheet, int):
        names = list(dfs)
        if sheet >= len(names):
            raise MissingSheetError(f"workbook has no sheet at position {sheet}")
        name = names[sheet]
        return name, dfs[name]
    if sheet not in dfs:
        raise MissingSheetError(f"sheet not found: {sheet}")
    return sheet, dfs[sheet]


def iter_rows(df: pd.DataFrame, first_row: int = 1) -> Iterator[RowData]:
    """Yield tagged rows of a raw frame. Fully blank rows are skipped.

    first_row is the Excel row number of df.iloc[0].
    """
    for offset, raw in enumerate(df.itertuples(index=False, name=None)):
        cells = {}
        for col, value in enumerate(raw, start=1):
            cell = Cell.from_raw(value)
            if not cell.is_empty:
                cells[col] = cell
        if not cells:
            continue
        yield RowData(row_number=first_row + offset, cells=cells)


def normalize_sheet(df: pd.DataFrame, sheet_name: str) -> SheetData:
    """Split a raw frame into header (row 1) and tagged data rows (row 2+).

    Raises:
        FormatFault: fewer than two rows (no header + data)
    """
    if df.shape[0] < 2:
        raise FormatFault(f"sheet '{sheet_name}' has too few rows to read data")
    header = ["" if pd.isna(v) else str(v).strip() for v in df.iloc[0].tolist()]
    rows = list(iter_rows(df.iloc[1:], first_row=2))
    return SheetData(sheet_name=sheet_name, header=header, rows=rows)


def load_workbook_for_edit(path: Path) -> Workbook:
    """Open a workbook with openpyxl keeping styles for in-place edits."""
    if not path.exists():
        raise IOFault(f"file not found: {path}")
    try:
        return load_workbook(path)
    except _READ_ERRORS as e:
        raise IOFault(f"cannot read workbook {path}: {e}") from e
