"""Domain models for the dttools workbook converters.

Cells, rows, transformation profiles, fault records and run results.
"""

from .cell import EMPTY, Cell, CellKind
from .fault_record import FaultRecord
from .processing_result import RunResult
from .profile import (
    ColumnMapping,
    HeaderMapping,
    IonChromatographyProfile,
    ProfileKind,
    TransformProfile,
    VocNmhcProfile,
)
from .row_data import RowData

__all__ = [
    # Cell level
    "Cell",
    "CellKind",
    "EMPTY",
    "RowData",
    # Profiles
    "ColumnMapping",
    "HeaderMapping",
    "IonChromatographyProfile",
    "ProfileKind",
    "TransformProfile",
    "VocNmhcProfile",
    # Results
    "FaultRecord",
    "RunResult",
]
