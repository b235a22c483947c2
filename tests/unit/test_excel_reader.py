from __future__ import annotations

from datetime import datetime, time
from pathlib import Path

import pandas as pd
import pytest

from dttools.errors import FormatFault, IOFault, MissingSheetError
from dttools.excel.reader import (
    load_workbook_for_edit,
    normalize_sheet,
    read_excel_file,
    select_sheet,
)
from dttools.models.cell import EMPTY, Cell, CellKind


def _make_excel(tmp_path: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


def test_read_and_normalize_success(temp_workdir: Path):
    excel = _make_excel(
        temp_workdir, "proton.xlsx",
        {
            "Sheet1": [
                ["时间", "NO₃⁻(μg/m³)"],
                ["2024-03-15 08:00:00", 5.2],
                ["2024-03-15 09:00:00", "4.1(C)"],
            ]
        },
    )
    dfs = read_excel_file(excel)
    assert list(dfs) == ["Sheet1"]
    sheet = normalize_sheet(dfs["Sheet1"], "Sheet1")
    assert sheet.header == ["时间", "NO₃⁻(μg/m³)"]
    assert [r.row_number for r in sheet.rows] == [2, 3]
    assert sheet.rows[0].get(2).value == pytest.approx(5.2)
    assert sheet.rows[1].get(2).kind is CellKind.TEXT


def test_header_is_stripped(temp_workdir: Path):
    excel = _make_excel(temp_workdir, "h.xlsx", {"S": [[" 时间 ", None, "x"], [1, 2, 3]]})
    sheet = normalize_sheet(read_excel_file(excel)["S"], "S")
    assert sheet.header == ["时间", "", "x"]


def test_typed_cells_survive(temp_workdir: Path, make_workbook):
    path = make_workbook(
        temp_workdir / "typed.xlsx",
        {"S": [["日期", "时间"], [datetime(2024, 3, 15), time(8, 0)]]},
    )
    sheet = normalize_sheet(read_excel_file(path)["S"], "S")
    row = sheet.rows[0]
    assert row.get(1).kind is CellKind.DATETIME
    assert row.get(1).value.date().isoformat() == "2024-03-15"
    assert row.get(2).value == time(8, 0)


def test_normalize_requires_data_row(temp_workdir: Path):
    excel = _make_excel(temp_workdir, "bad.xlsx", {"Sheet1": [["时间"]]})
    dfs = read_excel_file(excel)
    with pytest.raises(FormatFault):
        normalize_sheet(dfs["Sheet1"], "Sheet1")


def test_blank_rows_are_skipped(temp_workdir: Path):
    excel = _make_excel(
        temp_workdir, "blank.xlsx",
        {"Sheet1": [["时间", "v"], ["a", 1], [None, None], ["b", 2]]},
    )
    sheet = normalize_sheet(read_excel_file(excel)["Sheet1"], "Sheet1")
    assert [r.get(1).value for r in sheet.rows] == ["a", "b"]


def test_select_sheet(temp_workdir: Path):
    excel = _make_excel(temp_workdir, "multi.xlsx", {"A": [["c1"], [1]], "B": [["c1"], [2]]})
    dfs = read_excel_file(excel)
    assert select_sheet(dfs, 0)[0] == "A"
    assert select_sheet(dfs, "B")[0] == "B"
    with pytest.raises(MissingSheetError):
        select_sheet(dfs, "C")
    with pytest.raises(MissingSheetError):
        select_sheet(dfs, 5)
    with pytest.raises(MissingSheetError):
        select_sheet({}, 0)


def test_missing_file_is_io_fault(temp_workdir: Path):
    with pytest.raises(IOFault, match="file not found"):
        read_excel_file(temp_workdir / "nope.xlsx")
    with pytest.raises(IOFault):
        load_workbook_for_edit(temp_workdir / "nope.xlsx")


def test_garbage_file_is_io_fault(temp_workdir: Path):
    bogus = temp_workdir / "bogus.xlsx"
    bogus.write_bytes(b"this is not a zip container")
    with pytest.raises(IOFault, match="cannot read workbook"):
        read_excel_file(bogus)
    with pytest.raises(IOFault):
        load_workbook_for_edit(bogus)


def test_na_strings_stay_text(temp_workdir: Path, make_workbook):
    """'N/A', 'null', 'NA' reach the cell rules as text instead of vanishing."""
    path = make_workbook(
        temp_workdir / "na.xlsx",
        {"S": [["时间", "v"], ["N/A", "NA"], ["null", 1.5], [None, "x"]]},
    )
    sheet = normalize_sheet(read_excel_file(path)["S"], "S")
    assert [r.get(1) for r in sheet.rows] == [Cell.text("N/A"), Cell.text("null"), EMPTY]
    assert sheet.rows[0].get(2) == Cell.text("NA")
    assert sheet.rows[1].get(2) == Cell.numeric(1.5)


def test_error_cells_are_kept(temp_workdir: Path, make_workbook):
    path = make_workbook(
        temp_workdir / "err.xlsx",
        {"S": [["时间", "v"], ["#DIV/0!", 2.0], ["2024-03-15 08:00:00", "#N/A"]]},
    )
    sheet = normalize_sheet(read_excel_file(path)["S"], "S")
    assert sheet.rows[0].get(1) == Cell.text("#DIV/0!")
    assert sheet.rows[0].get(2) == Cell.numeric(2.0)
    assert sheet.rows[1].get(2) == Cell.text("#N/A")
