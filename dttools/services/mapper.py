from __future__ import annotations

from collections.abc import Mapping

from ..models.cell import EMPTY, Cell
from ..models.profile import ColumnMapping

"""Column mapper: place transformed source cells into output columns."""

__all__ = [
    "map_row",
]


def map_row(cells: Mapping[int, Cell], mapping: ColumnMapping) -> list[Cell]:
    """Build an output row from source cells keyed by 1-based source column.

    The result has mapping.width cells; result[0] is output column 1.
    Destinations without a source stay empty; unmapped sources are dropped.
    """
    out = [EMPTY] * mapping.width
    for source, cell in cells.items():
        dest = mapping.destination(source)
        if dest is None:
            continue
        out[dest - 1] = cell
    return out
