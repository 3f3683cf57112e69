# stair_forecast/core/delta.py
from typing import List, Optional, Sequence, Tuple

from .staircase import StaircaseRow

Cell = Optional[float]


def delta(current: Cell, previous: Cell) -> Cell:
    """Signed change between two cells; None when either side is missing."""
    if current is None or previous is None:
        return None
    return current - previous


def row_delta(current: Sequence[Cell], previous: Optional[Sequence[Cell]]) -> Tuple[Cell, ...]:
    """Cell-by-cell delta of two rows on the same column axis.

    A row without a predecessor yields an all-None delta row.
    """
    if previous is None:
        return tuple(None for _ in current)
    return tuple(delta(cur, prev) for cur, prev in zip(current, previous))


def compute_deltas(rows: Sequence[StaircaseRow]) -> List[Tuple[Cell, ...]]:
    """Delta row for every staircase row, in the same order.

    A row is compared with the row emitted right before it only when both
    belong to the same ship-to group; the first row of each group has no
    predecessor.
    """
    deltas = []
    previous = None
    for row in rows:
        comparator = previous.values if previous is not None and previous.group == row.group else None
        deltas.append(row_delta(row.values, comparator))
        previous = row
    return deltas
