"""
Leave day counting.

A chargeable day is a calendar day that counts toward a request's
total_days. Weekends are chargeable only when the weekend policy says so.
"""
from datetime import date, datetime, timedelta
from typing import Union

from leavedesk.core.exceptions import InvalidRange

DateLike = Union[date, str]

# date.weekday(): Monday == 0 ... Sunday == 6
WEEKEND_DAYS = (5, 6)


def parse_date(value: DateLike) -> date:
    """Coerce a date or ISO ``YYYY-MM-DD`` string to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidRange(f"Invalid date: {value!r}", details={"value": str(value)})


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_chargeable_days(start_date: DateLike, end_date: DateLike, weekend_counts: bool) -> int:
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start > end:
        raise InvalidRange(
            "Start date cannot be after end date.",
            details={"start_date": start.isoformat(), "end_date": end.isoformat()}
        )

    if weekend_counts:
        return (end - start).days + 1
    return sum(1 for day in iter_days(start, end) if day.weekday() not in WEEKEND_DAYS)


def month_window(year: int, month: int):
    """First and last day of a calendar month."""
    first = date(year, month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return first, last
