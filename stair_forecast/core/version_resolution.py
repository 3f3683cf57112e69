# stair_forecast/core/version_resolution.py
"""Selection of the effective forecast revision per target month.

Each target month carries its own set of revisions. A request for a
specific revision is honoured month by month; months that never received
that revision fall back to their latest revision and are reported as
fallback months so callers can flag them.
"""
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from .month_label import CalendarMonth, to_calendar_month
from ..exceptions import InvalidVersionSelector

LATEST = 'latest'

VersionSelector = Union[int, str]


class VersionRecord(NamedTuple):
    """In-memory forecast version: target month, revision number and its entries."""
    month: CalendarMonth
    version: int
    entries: Tuple[Any, ...] = ()


class VersionResolution(NamedTuple):
    requested_version: VersionSelector
    effective: Dict[CalendarMonth, Optional[Any]]
    version_selection: Dict[CalendarMonth, Optional[int]]
    available_versions: List[int]
    fallback_months: List[CalendarMonth]

    def effective_versions(self) -> List[Any]:
        """Effective version records in target-month order, skipping empty months."""
        return [self.effective[month] for month in sorted(self.effective)
                if self.effective[month] is not None]


def parse_version_selector(raw: Any) -> VersionSelector:
    """Normalise a revision selector.

    Args:
        raw: None, '', 'latest', a non-negative int or a string of digits

    Returns:
        'latest' or the requested revision number

    Raises:
        InvalidVersionSelector: If the value is not a non-negative integer
    """
    if raw is None:
        return LATEST

    if isinstance(raw, bool):
        raise InvalidVersionSelector(raw)

    if isinstance(raw, int):
        if raw < 0:
            raise InvalidVersionSelector(raw)
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        if text == '' or text.lower() == LATEST:
            return LATEST
        if text.isdigit():
            return int(text)

    raise InvalidVersionSelector(raw)


def group_versions_by_month(versions: Iterable[Any]) -> Dict[CalendarMonth, Tuple[Any, ...]]:
    """Partition version records by target month, preserving input order."""
    grouped: Dict[CalendarMonth, Tuple[Any, ...]] = {}
    for record in versions:
        month = to_calendar_month(record.month)
        grouped[month] = grouped.get(month, ()) + (record,)
    return grouped


def _latest(records: Sequence[Any]) -> Any:
    return max(records, key=lambda record: record.version)


def resolve_versions(versions: Iterable[Any], selector: Any = LATEST) -> VersionResolution:
    """Pick the effective revision for every target month.

    Args:
        versions: Records exposing ``month``, ``version`` and ``entries``
            (ORM ForecastVersion rows or VersionRecord tuples)
        selector: Requested revision or 'latest'

    Returns:
        VersionResolution with the per-month choice and the fallback months
    """
    requested = parse_version_selector(selector)
    versions = list(versions)
    grouped = group_versions_by_month(versions)

    effective: Dict[CalendarMonth, Optional[Any]] = {}
    selection: Dict[CalendarMonth, Optional[int]] = {}
    fallback_months: List[CalendarMonth] = []

    for month in sorted(grouped):
        records = grouped[month]
        if not records:
            effective[month] = None
            selection[month] = None
            continue

        chosen = _latest(records)
        if requested != LATEST:
            match = next((record for record in records if record.version == requested), None)
            if match is not None:
                chosen = match
            else:
                fallback_months.append(month)

        effective[month] = chosen
        selection[month] = chosen.version

    available = sorted({record.version for record in versions})

    return VersionResolution(
        requested_version=requested,
        effective=effective,
        version_selection=selection,
        available_versions=available,
        fallback_months=fallback_months
    )
