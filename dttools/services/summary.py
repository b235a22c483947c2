from __future__ import annotations

from ..models.processing_result import RunResult

"""SUMMARY line rendering.

Format:
SUMMARY profile={name} rows={rows} skipped_rows={n} cleared_cells={n}
edited_cells={n} renamed_sheets={n} faults={n} elapsed_sec={s} output={path}
(one line, single spaces)
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for one run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from pathlib import Path
        >>> start = datetime(2024, 3, 15, 8, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 3, 15, 8, 0, 2, tzinfo=timezone.utc)
        >>> result = RunResult(
        ...     profile="ion_chromatography", input_path=Path("a.xlsx"),
        ...     output_path=Path("processed_a.xlsx"), start_time=start, end_time=end,
        ...     rows_written=24,
        ... )
        >>> render_summary_line(result)  # doctest: +ELLIPSIS
        'SUMMARY profile=ion_chromatography rows=24 skipped_rows=0 ... elapsed_sec=2 output=processed_a.xlsx'
    """
    return (
        f"SUMMARY profile={result.profile} "
        f"rows={result.rows_written} "
        f"skipped_rows={result.rows_skipped} "
        f"cleared_cells={result.cleared_cells} "
        f"edited_cells={result.edited_cells} "
        f"renamed_sheets={result.renamed_sheets} "
        f"faults={result.faults} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)} "
        f"output={result.output_path}"
    )
