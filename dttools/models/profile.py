from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from openpyxl.utils import column_index_from_string

from ..errors import MissingColumnsError

"""Transformation profile models.

A profile is a fixed, declarative rule set: column mappings and report layout
for the ion chromatography export, rename/edit tables for the VOC/NMHC export.
Instances are built once by dttools.config.loader from the YAML profile tables
and are never mutated during a run.
"""

__all__ = [
    "ProfileKind",
    "ColumnMapping",
    "HeaderMapping",
    "ReportTemplate",
    "IonChromatographyProfile",
    "TextReplacement",
    "CellReplacement",
    "SentinelTag",
    "VocNmhcProfile",
    "TransformProfile",
]


class ProfileKind(Enum):
    ION_CHROMATOGRAPHY = "ion_chromatography"
    VOC_NMHC = "voc_nmhc"


@dataclass(frozen=True)
class ColumnMapping:
    """Static source column -> destination column table (both 1-based)."""
    pairs: dict[int, int]
    width: int = 0  # 出力行の列数 (最大の出力列より小さい場合は切り上げ)

    def __post_init__(self) -> None:
        widest = max(self.pairs.values(), default=0)
        if self.width < widest:
            object.__setattr__(self, "width", widest)

    def destination(self, source: int) -> int | None:
        return self.pairs.get(source)


@dataclass(frozen=True)
class HeaderMapping:
    """Header name -> destination column, resolved once against a header row."""
    columns: dict[str, int]

    @staticmethod
    def index_header(header: Sequence[str]) -> dict[str, int]:
        """Stripped header name -> 1-based source column (blank names skipped)."""
        return {name.strip(): i for i, name in enumerate(header, start=1) if name and name.strip()}

    def resolve(
        self,
        index: Mapping[str, int],
        sheet_name: str,
        width: int = 0,
        extra: dict[int, int] | None = None,
    ) -> ColumnMapping:
        """Resolve header names to source indices using an index from index_header().

        Raises:
            MissingColumnsError: if any configured header is absent
        """
        missing = [name for name in self.columns if name not in index]
        if missing:
            raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {missing}")
        pairs = {index[name]: dest for name, dest in self.columns.items()}
        if extra:
            pairs.update(extra)
        return ColumnMapping(pairs=pairs, width=width)


@dataclass(frozen=True)
class ReportTemplate:
    """Fixed layout of the ion chromatography report sheet."""
    sheet_title: str
    notice: str  # A1
    header_rows: list[list[str]]  # 3 行目から順に書き込む
    header_start_row: int
    data_start_row: int
    notice_fill: str  # ARGB
    header_fill: str
    time_fill: str
    column_widths: dict[str, float] = field(default_factory=dict)
    default_width: float | None = None

    @property
    def width(self) -> int:
        return max((len(r) for r in self.header_rows), default=0)


@dataclass(frozen=True)
class IonChromatographyProfile:
    name: str
    time_column: str
    date_column: str | None
    time_destination: int
    columns: HeaderMapping
    flag_markers: tuple[str, ...]
    sentinel_values: tuple[float, ...]
    template: ReportTemplate
    config_file: str
    default_header_text: str
    missing_tokens: tuple[str, ...] = ()  # 時間列の欠測表記 ("N/A" など)

    kind = ProfileKind.ION_CHROMATOGRAPHY


@dataclass(frozen=True)
class TextReplacement:
    find: str
    replace: str


@dataclass(frozen=True)
class CellReplacement:
    """Replacement bound to one cell of one (renamed) sheet."""
    sheet: str
    cell: str  # A1 形式
    find: str
    replace: str

    @property
    def row(self) -> int:
        return int("".join(ch for ch in self.cell if ch.isdigit()))

    @property
    def column(self) -> int:
        return column_index_from_string("".join(ch for ch in self.cell if ch.isalpha()))


@dataclass(frozen=True)
class SentinelTag:
    """Rewrite a sentinel in one column when that column carries a factor code.

    Applies from start_row on when the cell at (code_row, column) equals code.
    """
    column: str
    code_row: int
    code: str
    marker: str
    replacement: str
    start_row: int

    @property
    def column_index(self) -> int:
        return column_index_from_string(self.column)


@dataclass(frozen=True)
class VocNmhcProfile:
    name: str
    sheet_renames: dict[str, str]  # 旧シート名 -> 新シート名
    replacements: tuple[TextReplacement, ...]
    cell_replacements: tuple[CellReplacement, ...]
    sentinel_tags: tuple[SentinelTag, ...]
    strip_parentheses_from_row: int
    highlight_fill: str

    kind = ProfileKind.VOC_NMHC


TransformProfile = IonChromatographyProfile | VocNmhcProfile
