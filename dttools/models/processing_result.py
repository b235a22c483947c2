from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Run result model.

Aggregates the per-run counters that feed the SUMMARY line. Both profiles fill
the same structure; counters that do not apply to a profile stay at zero.
"""

__all__ = [
    "RunResult",
]


@dataclass(frozen=True)
class RunResult:
    """Outcome of processing one workbook."""
    profile: str  # プロファイル名
    input_path: Path
    output_path: Path
    start_time: datetime
    end_time: datetime
    rows_written: int = 0  # 出力したデータ行数
    rows_skipped: int = 0  # 時間セルが空でスキップした行数
    cleared_cells: int = 0  # フラグ/非数値/センチネルで空にしたセル数
    edited_cells: int = 0  # 書き換えたセル数 (VOC/NMHC)
    renamed_sheets: int = 0
    faults: int = 0  # 記録したセル単位の ParseFault 数

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()
