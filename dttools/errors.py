from __future__ import annotations

"""Fault taxonomy shared by the loaders, rule engine and writers.

- IOFault: input missing/unreadable, output unwritable (fatal)
- FormatFault: workbook shape differs from what the profile expects (fatal)
- ParseFault: a single cell could not be interpreted (logged, row continues)
- ConfigFault: boilerplate config present but unreadable (falls back to default)
"""

__all__ = [
    "DtToolsError",
    "IOFault",
    "FormatFault",
    "MissingSheetError",
    "MissingColumnsError",
    "MissingCellError",
    "ParseFault",
    "MalformedTimestamp",
    "ConfigFault",
]


class DtToolsError(Exception):
    """Base exception for all dttools faults."""


class IOFault(DtToolsError):
    """Raised when a workbook cannot be opened, read or written."""


class FormatFault(DtToolsError):
    """Raised when the workbook does not have the shape the profile assumes."""


class MissingSheetError(FormatFault):
    pass


class MissingColumnsError(FormatFault):
    """Raised when expected header columns are missing in the source sheet."""


class MissingCellError(FormatFault):
    pass


class ParseFault(DtToolsError):
    """Per-cell fault. Never aborts a run on its own."""

    fault_type = "PARSE_FAULT"


class MalformedTimestamp(ParseFault):
    fault_type = "MALFORMED_TIMESTAMP"


class ConfigFault(DtToolsError):
    pass
