from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from openpyxl.utils import get_column_letter

from ..config.loader import load_header_text
from ..errors import MalformedTimestamp, MissingColumnsError
from ..excel.reader import normalize_sheet, read_excel_file, select_sheet
from ..excel.writer import (
    apply_column_widths,
    new_report,
    output_path_for,
    save_workbook,
    solid_fill,
    write_data_row,
)
from ..logging.error_log import FaultLogBuffer
from ..models.cell import Cell
from ..models.fault_record import FaultRecord
from ..models.processing_result import RunResult
from ..models.profile import ColumnMapping, HeaderMapping, IonChromatographyProfile
from ..models.row_data import RowData
from .mapper import map_row
from .progress import RowProgress
from .rules import (
    CellStage,
    apply_stages,
    build_time_text_stages,
    build_value_stages,
    normalize_timestamp,
)

"""Ion chromatography (dtproton) pipeline.

Load the first sheet, resolve the header once, then for each data row:
normalize the time cell, run every mapped ion cell through the value filter,
and map the result onto the report columns. The report workbook is only
built and saved after every row has been transformed.
"""

__all__ = [
    "ResolvedColumns",
    "TransformedRow",
    "resolve_columns",
    "transform_row",
    "process",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedColumns:
    """Source positions resolved from the header row (1-based)."""
    time: int
    date: int | None
    mapping: ColumnMapping  # 時間列を含む


@dataclass(frozen=True)
class TransformedRow:
    row_number: int
    cells: list[Cell]  # 出力行 (cells[0] = A 列)
    cleared: int = 0
    fault: MalformedTimestamp | None = None


def resolve_columns(header: Sequence[str], sheet_name: str, profile: IonChromatographyProfile) -> ResolvedColumns:
    """One-time header -> index resolution.

    Raises:
        MissingColumnsError: the time column or a mapped ion column is absent
    """
    index = HeaderMapping.index_header(header)
    time_col = index.get(profile.time_column)
    if time_col is None:
        raise MissingColumnsError(f"sheet '{sheet_name}' missing time column: '{profile.time_column}'")
    date_col = index.get(profile.date_column) if profile.date_column else None
    mapping = profile.columns.resolve(
        index,
        sheet_name,
        width=profile.template.width,
        extra={time_col: profile.time_destination},
    )
    return ResolvedColumns(time=time_col, date=date_col, mapping=mapping)


def transform_row(
    row: RowData,
    resolved: ResolvedColumns,
    stages: Sequence[CellStage],
    time_stages: Sequence[CellStage] = (),
) -> TransformedRow | None:
    """Transform one data row. Returns None when the time cell is empty.

    An unreadable time keeps its original text after passing time_stages,
    which may clear it; the fault is returned with the row either way.
    """
    time_cell = row.get(resolved.time)
    if time_cell.is_empty:
        return None

    date_cell = row.get(resolved.date) if resolved.date is not None else None
    fault = None
    cleared = 0
    try:
        time_out = Cell.text(normalize_timestamp(time_cell, date_cell))
    except MalformedTimestamp as e:
        # 元のテキストを残す (日付は補完しない)
        fault = e
        outcome = apply_stages(Cell.text(time_cell.as_text().strip()), time_stages)
        if outcome.cleared_by is not None:
            cleared += 1
            logger.debug(f"row {row.row_number}: time cell cleared by {outcome.cleared_by}")
        time_out = outcome.cell

    source: dict[int, Cell] = {resolved.time: time_out}
    for col in resolved.mapping.pairs:
        if col == resolved.time:
            continue
        outcome = apply_stages(row.get(col), stages)
        if outcome.cleared_by is not None:
            cleared += 1
            logger.debug(
                f"row {row.row_number} col {get_column_letter(col)}: cleared by {outcome.cleared_by}"
            )
        source[col] = outcome.cell

    return TransformedRow(
        row_number=row.row_number,
        cells=map_row(source, resolved.mapping),
        cleared=cleared,
        fault=fault,
    )


def process(
    input_path: Path,
    profile: IonChromatographyProfile,
    *,
    fault_log: FaultLogBuffer,
    workdir: Path | None = None,
) -> RunResult:
    """Convert one ion chromatography export into the report workbook."""
    start_time = datetime.now(UTC)

    dfs = read_excel_file(input_path)
    sheet_name, df = select_sheet(dfs, 0)
    sheet = normalize_sheet(df, sheet_name)
    resolved = resolve_columns(sheet.header, sheet_name, profile)
    stages = build_value_stages(profile.flag_markers, profile.sentinel_values)
    time_stages = build_time_text_stages(profile.flag_markers, profile.missing_tokens)
    logger.info(f"sheet '{sheet_name}': {len(sheet.rows)} data rows")

    transformed: list[TransformedRow] = []
    skipped = 0
    with RowProgress(len(sheet.rows)) as progress:
        for row in sheet.rows:
            result = transform_row(row, resolved, stages, time_stages)
            progress.advance()
            if result is None:
                skipped += 1
                logger.debug(f"row {row.row_number}: empty time cell, skipped")
                continue
            if result.fault is not None:
                if result.cells[profile.time_destination - 1].is_empty:
                    logger.warning(f"row {row.row_number}: {result.fault}; time cell left empty")
                else:
                    logger.warning(f"row {row.row_number}: {result.fault}; original text kept")
                fault_log.append(
                    FaultRecord.create(
                        file=input_path.name,
                        sheet=sheet_name,
                        row=row.row_number,
                        column=get_column_letter(resolved.time),
                        fault_type=result.fault.fault_type,
                        message=str(result.fault),
                    )
                )
            transformed.append(result)

    header_text = load_header_text(profile, workdir)
    template = profile.template
    wb, ws = new_report(template, header_text)
    time_fill = {profile.time_destination: solid_fill(template.time_fill)}
    for offset, result in enumerate(transformed):
        write_data_row(ws, template.data_start_row + offset, result.cells, fills=time_fill)
    apply_column_widths(ws, template)

    output_path = save_workbook(wb, output_path_for(input_path))
    return RunResult(
        profile=profile.name,
        input_path=input_path,
        output_path=output_path,
        start_time=start_time,
        end_time=datetime.now(UTC),
        rows_written=len(transformed),
        rows_skipped=skipped,
        cleared_cells=sum(r.cleared for r in transformed),
        faults=sum(1 for r in transformed if r.fault is not None),
    )
