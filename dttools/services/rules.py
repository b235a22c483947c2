from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from openpyxl.cell.cell import ERROR_CODES

from ..errors import MalformedTimestamp
from ..models.cell import EMPTY, Cell, CellKind

"""Cell-level rules engine.

Two pieces:

1. normalize_timestamp(): any date/time representation -> 'YYYY-MM-DD HH:MM:SS'.
   A time-of-day needs a date context (the row's date cell); without one the
   value is a MalformedTimestamp. Reapplying it to its own output is a no-op.

2. The value filter: an ordered chain of (name, predicate, action) stages.

       flag_marker  -> text containing (C)/(RM)          -> empty
       non_numeric  -> non-numeric content               -> empty
       numeric_text -> numeric text                      -> numeric cell
       sentinel     -> numeric value equal to a sentinel -> empty

   Each stage sees the output of the previous one, so a flagged cell is gone
   before the numeric check ever looks at it.

   A time cell that cannot be normalized keeps its text, except that a flag
   marker, a missing-data token or an Excel error value clears it
   (build_time_text_stages).
"""

__all__ = [
    "OUTPUT_TIME_FORMAT",
    "normalize_timestamp",
    "parse_number",
    "CellStage",
    "CellOutcome",
    "build_value_stages",
    "apply_stages",
    "CELL_STAGE_ORDER",
    "TIME_TEXT_STAGE_ORDER",
    "build_time_text_stages",
]

OUTPUT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M",
    "%Y/%m/%d %H:%M",
)
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")
_TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%H:%M:%S.%f")

# Excel (1900 date system) serial day 0
_EXCEL_EPOCH = datetime(1899, 12, 30)

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def _parse_text(text: str, formats: Iterable[str]) -> datetime | None:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _from_serial(serial: float) -> datetime:
    seconds = round(serial * 86400)
    return _EXCEL_EPOCH + timedelta(seconds=seconds)


def _time_of_day(value: object) -> time | None:
    """Interpret value as a bare time-of-day; None if it is not one."""
    if isinstance(value, time):
        return value.replace(microsecond=0)
    if isinstance(value, str):
        parsed = _parse_text(value.strip(), _TIME_FORMATS)
        return parsed.time() if parsed is not None else None
    if isinstance(value, int | float) and not isinstance(value, bool) and 0 <= value < 1:
        return (_EXCEL_EPOCH + timedelta(seconds=round(value * 86400))).time()
    return None


def _coerce_date(value: object) -> date:
    """Calendar date of a date-context value."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        parsed = _parse_text(text, _DATE_FORMATS) or _parse_text(text, _DATETIME_FORMATS)
        if parsed is not None:
            return parsed.date()
    elif isinstance(value, int | float) and not isinstance(value, bool) and value >= 1:
        return _from_serial(float(value)).date()
    raise MalformedTimestamp(f"invalid date value: {value!r}")


def normalize_timestamp(value: object, date_context: object | None = None) -> str:
    """Format a date/time value as 'YYYY-MM-DD HH:MM:SS'.

    Parameters
    ----------
    value: datetime / date / time / str / Excel serial number (or a Cell)
    date_context: the row's date value, used only when value is a bare
        time-of-day

    Raises
    ------
    MalformedTimestamp: the value cannot be read, or it carries no date and
        no date context is available
    """
    if isinstance(value, Cell):
        value = value.value
    if isinstance(date_context, Cell):
        date_context = None if date_context.is_empty else date_context.value

    if value is None or isinstance(value, bool):
        raise MalformedTimestamp(f"invalid time value: {value!r}")

    if isinstance(value, datetime):
        return value.strftime(OUTPUT_TIME_FORMAT)
    if isinstance(value, date):
        return datetime.combine(value, time()).strftime(OUTPUT_TIME_FORMAT)

    if isinstance(value, int | float):
        if not math.isfinite(value) or value < 0:
            raise MalformedTimestamp(f"invalid time value: {value!r}")
        if value >= 1:
            return _from_serial(float(value)).strftime(OUTPUT_TIME_FORMAT)

    if isinstance(value, str):
        text = value.strip()
        parsed = _parse_text(text, _DATETIME_FORMATS)
        if parsed is None:
            parsed = _parse_text(text, _DATE_FORMATS)
        if parsed is not None:
            return parsed.strftime(OUTPUT_TIME_FORMAT)

    tod = _time_of_day(value)
    if tod is None:
        raise MalformedTimestamp(f"unrecognized time format: {value!r}")
    if date_context is None:
        # 日付を捏造しない
        raise MalformedTimestamp(f"time {value!r} has no date component")
    return datetime.combine(_coerce_date(date_context), tod).strftime(OUTPUT_TIME_FORMAT)


def parse_number(text: str) -> int | float | None:
    """Parse locale-neutral numeric text ('.' decimal point). None if not a number."""
    text = text.strip()
    if not _NUMBER_RE.match(text):
        return None
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)


@dataclass(frozen=True)
class CellStage:
    name: str
    applies: Callable[[Cell], bool]
    action: Callable[[Cell], Cell]


@dataclass(frozen=True)
class CellOutcome:
    cell: Cell
    cleared_by: str | None = None  # 空にしたステージ名


def _has_marker(markers: Sequence[str]) -> Callable[[Cell], bool]:
    def applies(cell: Cell) -> bool:
        if cell.kind is not CellKind.TEXT:
            return False
        text = cell.as_text()
        return any(m in text for m in markers)
    return applies


def _is_non_numeric(cell: Cell) -> bool:
    if cell.is_empty or cell.kind is CellKind.NUMERIC:
        return False
    if cell.kind is CellKind.TEXT:
        return parse_number(cell.as_text()) is None
    return True  # 値列の日時は数値ではない


def _is_numeric_text(cell: Cell) -> bool:
    return cell.kind is CellKind.TEXT and parse_number(cell.as_text()) is not None


def _to_numeric(cell: Cell) -> Cell:
    return Cell.numeric(parse_number(cell.as_text()))  # type: ignore[arg-type]


def _is_sentinel(sentinels: Sequence[float]) -> Callable[[Cell], bool]:
    def applies(cell: Cell) -> bool:
        return cell.kind is CellKind.NUMERIC and any(cell.value == s for s in sentinels)
    return applies


def _clear(cell: Cell) -> Cell:
    return EMPTY


CELL_STAGE_ORDER = ("flag_marker", "non_numeric", "numeric_text", "sentinel")


def build_value_stages(flag_markers: Sequence[str], sentinel_values: Sequence[float]) -> tuple[CellStage, ...]:
    stages = (
        CellStage("flag_marker", _has_marker(tuple(flag_markers)), _clear),
        CellStage("non_numeric", _is_non_numeric, _clear),
        CellStage("numeric_text", _is_numeric_text, _to_numeric),
        CellStage("sentinel", _is_sentinel(tuple(sentinel_values)), _clear),
    )
    return stages


def apply_stages(cell: Cell, stages: Sequence[CellStage]) -> CellOutcome:
    """Run a cell through the stages in order."""
    cleared_by = None
    for stage in stages:
        if cell.is_empty:
            break
        if stage.applies(cell):
            cell = stage.action(cell)
            if cell.is_empty:
                cleared_by = stage.name
    return CellOutcome(cell=cell, cleared_by=cleared_by)


TIME_TEXT_STAGE_ORDER = ("flag_marker", "missing_token")


def _is_missing_token(tokens: Sequence[str]) -> Callable[[Cell], bool]:
    def applies(cell: Cell) -> bool:
        if cell.kind is not CellKind.TEXT:
            return False
        text = cell.as_text().strip()
        return text in tokens or text in ERROR_CODES
    return applies


def build_time_text_stages(flag_markers: Sequence[str], missing_tokens: Sequence[str]) -> tuple[CellStage, ...]:
    """Stages for the text of a time cell that could not be normalized.

    The text is kept as it is unless it carries a flag marker, a missing-data
    token or an Excel error value; those clear the time cell.
    """
    return (
        CellStage("flag_marker", _has_marker(tuple(flag_markers)), _clear),
        CellStage("missing_token", _is_missing_token(tuple(missing_tokens)), _clear),
    )
