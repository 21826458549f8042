"""Date helpers working on day granularity."""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple


def as_day(d) -> date:
    """Strip the time part of a datetime, pass dates through"""
    if isinstance(d, datetime):
        return d.date()
    return d


def add_days(d: date, n: int) -> date:
    return as_day(d) + timedelta(days=n)


def days_between(d1: date, d2: date) -> int:
    """Number of days from d1 to d2 (negative if d2 is earlier)"""
    return (as_day(d2) - as_day(d1)).days


def each_day(lower: date, upper: date) -> Iterator[date]:
    """Yield every day from lower to upper inclusive"""
    d = as_day(lower)
    upper = as_day(upper)
    while d <= upper:
        yield d
        d += timedelta(days=1)


def in_range_inclusive(d: date, low: date, upp: date) -> bool:
    return as_day(low) <= as_day(d) <= as_day(upp)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def monday_of_week(d: date) -> date:
    """Monday starting the week containing d"""
    d = as_day(d)
    return d - timedelta(days=d.weekday())


_ISO_DATE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})\s*$")
_MONTH = re.compile(r"^\s*(\d{4})-(\d{2})\s*$")


def parse_iso_date(text: str) -> Optional[date]:
    """Parse YYYY-MM-DD, returning None if the text is not such a date"""
    m = _ISO_DATE.match(text)
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_month_range(text: str) -> Optional[Tuple[date, date]]:
    """
    Parse YYYY-MM into a range from the first of that month until the last
    day of the following month.
    """
    m = _MONTH.match(text)
    if not m:
        return None
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        return None
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    last_day = calendar.monthrange(next_year, next_month)[1]
    return date(year, month, 1), date(next_year, next_month, last_day)
