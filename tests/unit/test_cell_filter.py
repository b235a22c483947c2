from __future__ import annotations

from datetime import datetime

import pytest

from dttools.models.cell import EMPTY, Cell, CellKind
from dttools.services.rules import (
    CELL_STAGE_ORDER,
    TIME_TEXT_STAGE_ORDER,
    apply_stages,
    build_time_text_stages,
    build_value_stages,
    parse_number,
)


@pytest.fixture()
def stages():
    return build_value_stages(["(C)", "(RM)"], [-999])


def test_stage_order_is_flags_before_numeric_check(stages):
    assert tuple(s.name for s in stages) == CELL_STAGE_ORDER
    assert CELL_STAGE_ORDER.index("flag_marker") < CELL_STAGE_ORDER.index("non_numeric")
    assert CELL_STAGE_ORDER.index("numeric_text") < CELL_STAGE_ORDER.index("sentinel")


@pytest.mark.parametrize("text", ["12.3(C)", "(C)", "5(RM)", "(RM) 7.1", "1.0 (C) x"])
def test_flagged_cells_are_cleared(stages, text):
    outcome = apply_stages(Cell.from_raw(text), stages)
    assert outcome.cell is EMPTY
    assert outcome.cleared_by == "flag_marker"


@pytest.mark.parametrize("text", ["N/A", "--", "â€”", "离线", "12,5", "1_000", "nan", "inf"])
def test_non_numeric_text_is_cleared(stages, text):
    outcome = apply_stages(Cell.from_raw(text), stages)
    assert outcome.cell.is_empty
    assert outcome.cleared_by == "non_numeric"


def test_datetime_in_value_column_is_cleared(stages):
    outcome = apply_stages(Cell.from_raw(datetime(2024, 3, 15)), stages)
    assert outcome.cell.is_empty


@pytest.mark.parametrize("value", [-999, -999.0, "-999", " -999 "])
def test_sentinel_is_cleared(stages, value):
    outcome = apply_stages(Cell.from_raw(value), stages)
    assert outcome.cell.is_empty
    assert outcome.cleared_by == "sentinel"


@pytest.mark.parametrize("value", [0, 5.2, -998, -999.5, 1e-3, 120])
def test_other_numbers_pass_unchanged(stages, value):
    cell = Cell.from_raw(value)
    outcome = apply_stages(cell, stages)
    assert outcome.cell == cell
    assert outcome.cleared_by is None


def test_numeric_text_becomes_numeric(stages):
    outcome = apply_stages(Cell.from_raw(" 5.20 "), stages)
    assert outcome.cell.kind is CellKind.NUMERIC
    assert outcome.cell.value == pytest.approx(5.2)
    assert apply_stages(Cell.from_raw("12"), stages).cell == Cell.numeric(12)


def test_empty_cell_stays_empty(stages):
    outcome = apply_stages(EMPTY, stages)
    assert outcome.cell is EMPTY
    assert outcome.cleared_by is None


def test_custom_markers_and_sentinels():
    stages = build_value_stages(["<DL"], [-1])
    assert apply_stages(Cell.from_raw("0.3<DL"), stages).cell.is_empty
    assert apply_stages(Cell.from_raw(-1), stages).cell.is_empty
    assert apply_stages(Cell.from_raw(-999), stages).cell == Cell.numeric(-999)


@pytest.mark.parametrize(
    "text,expected",
    [("1", 1), ("-2", -2), ("+3.5", 3.5), (".5", 0.5), ("5.", 5.0), ("1e3", 1000.0), (" 7 ", 7)],
)
def test_parse_number_accepts(text, expected):
    assert parse_number(text) == expected


@pytest.mark.parametrize("text", ["", "1,5", "1_0", "nan", "Infinity", "0x10", "1e", "--1"])
def test_parse_number_rejects(text):
    assert parse_number(text) is None


def test_time_text_stages():
    stages = build_time_text_stages(["(C)"], ["N/A", "null"])
    assert tuple(s.name for s in stages) == TIME_TEXT_STAGE_ORDER
    assert apply_stages(Cell.text("08:00(C)"), stages).cleared_by == "flag_marker"
    assert apply_stages(Cell.text(" N/A "), stages).cleared_by == "missing_token"
    assert apply_stages(Cell.text("#VALUE!"), stages).cleared_by == "missing_token"
    kept = apply_stages(Cell.text("25:99"), stages)
    assert kept.cell == Cell.text("25:99")
    assert kept.cleared_by is None
