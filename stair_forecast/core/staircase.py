# stair_forecast/core/staircase.py
"""Pivot of resolved observations into the forecast staircase.

Rows are keyed by snapshot (order) month, optionally split by ship-to, and
columns by target month. A row only claims the span between the first and
the last target month its snapshot actually forecast; every cell outside
that horizon is None.
"""
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from .month_label import CalendarMonth, encode


class ShipToKey(NamedTuple):
    identity: Any
    code: str
    name: Optional[str] = None


class Observation(NamedTuple):
    """One resolved forecast value."""
    snapshot_month: CalendarMonth
    target_month: CalendarMonth
    value: Optional[float]
    ship_to: Optional[ShipToKey] = None
    sku_id: Any = None
    version: Optional[int] = None


class StaircaseRow(NamedTuple):
    snapshot_month: CalendarMonth
    ship_to: Optional[ShipToKey]
    first_month: CalendarMonth
    last_month: CalendarMonth
    values: Tuple[Optional[float], ...]

    @property
    def group(self) -> Any:
        """Grouping key used to pair rows for deltas."""
        return self.ship_to.identity if self.ship_to is not None else None

    @property
    def label(self) -> str:
        return encode(self.snapshot_month)


class Staircase(NamedTuple):
    columns: Tuple[CalendarMonth, ...]
    rows: Tuple[StaircaseRow, ...]
    by_ship_to: bool = False

    @property
    def column_labels(self) -> List[str]:
        return [encode(month) for month in self.columns]


def _ship_to_identity(ship_to: Optional[ShipToKey]) -> Any:
    if ship_to is None:
        return None
    return ship_to.identity if ship_to.identity is not None else ship_to.code


def _group_sort_key(group_key):
    ship_to, snapshot_month = group_key
    if ship_to is None:
        return ('', '', snapshot_month)
    return ((ship_to.code or '').casefold(), str(ship_to.identity), snapshot_month)


def group_observations(
    observations: Iterable[Observation],
    by_ship_to: bool = False
) -> Mapping[Tuple[Optional[ShipToKey], CalendarMonth], Mapping[CalendarMonth, float]]:
    """Fold observations into {(ship_to, snapshot): {target: value}}.

    Values landing on the same cell are summed, which is how ship-tos are
    combined in aggregated mode.
    """
    cells: Dict[Tuple[Optional[ShipToKey], CalendarMonth], Dict[CalendarMonth, float]] = {}
    ship_tos: Dict[Any, ShipToKey] = {}

    for observation in observations:
        if observation.value is None:
            continue

        ship_to = None
        if by_ship_to:
            identity = _ship_to_identity(observation.ship_to)
            ship_to = ship_tos.setdefault(
                identity,
                ShipToKey(identity, observation.ship_to.code if observation.ship_to else '',
                          observation.ship_to.name if observation.ship_to else None)
            )

        row = cells.setdefault((ship_to, observation.snapshot_month), {})
        row[observation.target_month] = row.get(observation.target_month, 0) + observation.value

    return MappingProxyType({key: MappingProxyType(row) for key, row in cells.items()})


def build_staircase(
    observations: Iterable[Observation],
    by_ship_to: bool = False,
    columns: Optional[Iterable[CalendarMonth]] = None
) -> Staircase:
    """Build the staircase rows for a set of resolved observations.

    Args:
        observations: Resolved observations
        by_ship_to: Split rows per ship-to instead of summing across ship-tos
        columns: Extra target months to include in the column axis

    Returns:
        Staircase with a shared column axis and rows in emission order
    """
    observations = list(observations)
    grouped = group_observations(observations, by_ship_to)

    axis = {observation.target_month for observation in observations}
    if columns is not None:
        axis.update(columns)
    axis = tuple(sorted(axis))

    rows = []
    for key in sorted(grouped, key=_group_sort_key):
        ship_to, snapshot_month = key
        cells = grouped[key]
        first_month = min(cells)
        last_month = max(cells)

        values = tuple(
            cells.get(month) if first_month <= month <= last_month else None
            for month in axis
        )
        rows.append(StaircaseRow(snapshot_month, ship_to, first_month, last_month, values))

    return Staircase(columns=axis, rows=tuple(rows), by_ship_to=by_ship_to)
