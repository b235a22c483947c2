from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""FaultRecord model for the per-cell fault log.

Records are serialized as JSON Lines with a fixed key set. row=-1 is allowed
for faults that are not tied to a single row (e.g. a config file problem).
"""

__all__ = [
    "FaultRecord",
]


@dataclass(frozen=True)
class FaultRecord:
    """Structured fault record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Input workbook filename
        sheet: Sheet name within the workbook
        row: Excel row number (1-based). -1 when the row is unknown
        column: Column letter, empty when the fault is not tied to a column
        fault_type: Fault classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    column: str
    fault_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str, sheet: str, row: int, column: str, fault_type: str, message: str
    ) -> FaultRecord:
        """Create a new FaultRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return FaultRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            column=column,
            fault_type=fault_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
