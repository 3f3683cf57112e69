# stair_forecast/core/relative_month.py
import re

from .month_label import CalendarMonth, add_months, decode

_RELATIVE_PATTERN = re.compile(r'^N(?:([+-])(\d+))?$')


def is_relative_header(header: str) -> bool:
    """Check whether a column header is an offset token (N, N+k, N-k)."""
    return bool(_RELATIVE_PATTERN.match(header.strip().upper()))


def resolve(header: str, snapshot_month: CalendarMonth) -> CalendarMonth:
    """Resolve a month column header against the snapshot (order) month.

    'N' is the snapshot month itself, 'N+k' / 'N-k' shift it by k months and
    anything else is parsed as an absolute label such as 'Okt-24'.

    Args:
        header: Column header text
        snapshot_month: Month the order snapshot was taken

    Returns:
        Absolute target month

    Raises:
        InvalidLabelError: If the header is neither an offset nor a valid label
    """
    match = _RELATIVE_PATTERN.match(header.strip().upper())
    if not match:
        return decode(header)

    sign, offset = match.groups()
    if sign is None:
        return snapshot_month

    offset = int(offset)
    return add_months(snapshot_month, offset if sign == '+' else -offset)
