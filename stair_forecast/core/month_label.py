# stair_forecast/core/month_label.py
from datetime import date, datetime
from types import MappingProxyType
from typing import List, NamedTuple, Union

from ..exceptions import InvalidLabelError, InvalidMonthIndexError

# Short month names as used on the order sheets (Indonesian locale)
MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'Mei', 'Jun',
               'Jul', 'Agu', 'Sep', 'Okt', 'Nov', 'Des')

MONTH_INDEX = MappingProxyType({name: index for index, name in enumerate(MONTH_NAMES)})
_MONTH_INDEX_FOLDED = MappingProxyType({name.casefold(): index for name, index in MONTH_INDEX.items()})

YEAR_PIVOT = 70


class CalendarMonth(NamedTuple):
    """Absolute month anchored at day 1.

    Ordering and equality follow (year, month); month is 1-12.
    """
    year: int
    month: int

    @classmethod
    def from_date(cls, value: Union[date, datetime]) -> 'CalendarMonth':
        return cls(value.year, value.month)

    def to_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def month_index(self) -> int:
        """Zero-based month of year."""
        return self.month - 1

    def __str__(self):
        return encode(self)


def add_months(month: CalendarMonth, offset: int) -> CalendarMonth:
    """Shift a month forward (or backward for negative offsets).

    Args:
        month: Starting month
        offset: Number of months to add

    Returns:
        Shifted month, with year rollover
    """
    total = month.year * 12 + month.month_index + offset
    year, index = divmod(total, 12)
    return CalendarMonth(year, index + 1)


def months_between(start: CalendarMonth, end: CalendarMonth) -> int:
    """Signed number of months from start to end."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_range(first: CalendarMonth, last: CalendarMonth) -> List[CalendarMonth]:
    """Inclusive list of months from first to last (empty if last < first)."""
    return [add_months(first, i) for i in range(months_between(first, last) + 1)]


def _expand_year(raw_year: str, label: str) -> int:
    raw_year = raw_year.strip()
    if not raw_year.isdigit():
        raise InvalidLabelError(label)

    year = int(raw_year)
    if len(raw_year) > 2:
        return year
    return 1900 + year if year >= YEAR_PIVOT else 2000 + year


def decode(label: str) -> CalendarMonth:
    """Parse a label such as 'Jul-24' into a CalendarMonth.

    Args:
        label: Month label, '<Mon>-<yy>'

    Returns:
        CalendarMonth for the label

    Raises:
        InvalidLabelError: If the month token is unknown or the year is not numeric
    """
    if not isinstance(label, str):
        raise InvalidLabelError(label)

    raw_month, sep, raw_year = label.strip().partition('-')
    month_index = _MONTH_INDEX_FOLDED.get(raw_month.strip().casefold())
    if month_index is None or not sep:
        raise InvalidLabelError(label)

    return CalendarMonth(_expand_year(raw_year, label), month_index + 1)


def encode(month: Union[CalendarMonth, date, datetime]) -> str:
    """Format a month as '<Mon>-<yy>'.

    Raises:
        InvalidMonthIndexError: If the month of year falls outside the table
    """
    if not isinstance(month, CalendarMonth):
        month = CalendarMonth.from_date(month)

    index = month.month - 1
    if not 0 <= index < len(MONTH_NAMES):
        raise InvalidMonthIndexError(index)

    return f"{MONTH_NAMES[index]}-{str(month.year)[-2:]}"


def to_calendar_month(value: Union[CalendarMonth, date, datetime, str]) -> CalendarMonth:
    """Coerce a label, date or CalendarMonth into a CalendarMonth."""
    if isinstance(value, CalendarMonth):
        return value
    if isinstance(value, (date, datetime)):
        return CalendarMonth.from_date(value)
    return decode(value)
