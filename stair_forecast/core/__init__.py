from .month_label import (
    CalendarMonth, MONTH_NAMES, encode, decode, add_months,
    months_between, month_range, to_calendar_month
)
from .relative_month import resolve, is_relative_header
from .version_resolution import (
    LATEST, VersionRecord, VersionResolution,
    parse_version_selector, group_versions_by_month, resolve_versions
)
from .staircase import (
    ShipToKey, Observation, StaircaseRow, Staircase,
    group_observations, build_staircase
)
from .delta import delta, row_delta, compute_deltas

__all__ = [
    'CalendarMonth',
    'MONTH_NAMES',
    'encode',
    'decode',
    'add_months',
    'months_between',
    'month_range',
    'to_calendar_month',
    'resolve',
    'is_relative_header',
    'LATEST',
    'VersionRecord',
    'VersionResolution',
    'parse_version_selector',
    'group_versions_by_month',
    'resolve_versions',
    'ShipToKey',
    'Observation',
    'StaircaseRow',
    'Staircase',
    'group_observations',
    'build_staircase',
    'delta',
    'row_delta',
    'compute_deltas'
]
