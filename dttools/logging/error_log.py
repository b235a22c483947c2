from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from dttools.models.fault_record import FaultRecord

"""Fault log buffering.

Per-cell faults (malformed timestamps and the like) are collected in memory
while a workbook is transformed and written as JSON Lines once the run is
over. The log file `logs/faults-YYYYMMDD-HHMMSS.log` (UTC) is only created
when there is at least one record.
"""

__all__ = [
    "FaultRecord",
    "FaultLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class FaultLogBuffer:
    """In-memory buffer for fault records. flush() appends JSON Lines.

    No thread safety needed (single, serial run).
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[FaultRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"faults-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[FaultRecord]:
        return list(self._records)

    def append(self, record: FaultRecord) -> None:
        self._records.append(record)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path or None if nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
