"""
Typed access to cell values

openpyxl hands out dates as datetime, times as time or timedelta and numbers
as int or float.  These converters turn such raw values into the types the
roster model needs, raising ValueConversionError otherwise.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Sequence, TypeVar

from .errors import ValueConversionError

E = TypeVar("E")


def as_date(v: Any) -> date:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    raise ValueConversionError("date", v)


def as_string(v: Any) -> str:
    if isinstance(v, str):
        return v
    raise ValueConversionError("string", v)


def as_text(v: Any) -> str:
    """Cell text, treating an empty cell as the empty string"""
    if v is None:
        return ""
    return as_string(v)


def as_number(v: Any) -> float:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return v
    raise ValueConversionError("number", v)


def as_minutes(v: Any) -> int:
    """Minutes since midnight from a time, a duration or an HH:MM string"""
    if isinstance(v, time):
        return v.hour * 60 + v.minute
    if isinstance(v, timedelta):
        return int(v.total_seconds() // 60)
    if isinstance(v, str):
        hours, sep, minutes = v.strip().partition(":")
        if sep and hours.isdigit() and minutes.isdigit():
            return int(hours) * 60 + int(minutes)
    raise ValueConversionError("time of day", v)


def get(values: Sequence[Sequence[Any]], row: int, col: int,
        conv: Callable[[Any], E]) -> E:
    """Convert values[row][col], annotating conversion errors with the position"""
    try:
        return conv(values[row][col])
    except ValueConversionError as e:
        raise e.at(row, col)

