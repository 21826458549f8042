"""
Slot Text Parser

A schedule cell holds a comma separated list of employees, each optionally
followed by an explicit time range, and an optional trailing comment started
by a dash:

    Alice, Bob 13:00-19:00 - Bob covers for Carol

The time range overrides the default duration of the slot's shift.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union
import re

from .errors import SlotTextParseError
from .shifts import format_hhmm


@dataclass(frozen=True)
class DefaultItem:
    """An employee working the slot's default shift times"""
    name: str


@dataclass(frozen=True)
class SpecifiedItem:
    """An employee with explicitly given start and stop times"""
    name: str
    start: int
    stop: int

    @property
    def duration(self) -> int:
        return self.stop - self.start


Item = Union[DefaultItem, SpecifiedItem]

_TIME = r"(\d{1,2})(?::(\d{2}))?"
TIME_RANGE_RE = re.compile(rf"^{_TIME}-{_TIME}$")
_TIME_RANGE_SUFFIX = r"\d{1,2}(?::\d{2})?-\d{1,2}(?::\d{2})?"


def find_comment(text: str) -> Optional[int]:
    """Index of the dash starting a comment, ignoring dashes between digits"""
    for i, ch in enumerate(text):
        if ch != "-":
            continue
        digit_before = i > 0 and text[i - 1].isdigit()
        digit_after = i + 1 < len(text) and text[i + 1].isdigit()
        if not (digit_before and digit_after):
            return i
    return None


def strip_comment(text: str) -> str:
    ndx = find_comment(text)
    return text if ndx is None else text[:ndx]


def parse_time_range(text: str) -> Optional[tuple]:
    """
    Parse H[H][:MM]-H[H][:MM] into (start, stop) minutes, None if malformed.
    Times must lie within the day and the range must not run backwards.
    """
    m = TIME_RANGE_RE.match(text)
    if not m:
        return None
    hours = (int(m.group(1)), int(m.group(3)))
    minutes = (int(m.group(2) or 0), int(m.group(4) or 0))
    if any(h > 24 for h in hours) or any(mm >= 60 for mm in minutes):
        return None
    start = hours[0] * 60 + minutes[0]
    stop = hours[1] * 60 + minutes[1]
    if stop > 24 * 60 or stop <= start:
        return None
    return start, stop


def parse(text: str) -> List[Item]:
    """Parse the content of one schedule cell"""
    items: List[Item] = []
    for token in strip_comment(text or "").split(","):
        token = token.strip()
        if not token:
            continue
        parts = token.split(None, 1)
        if len(parts) == 1:
            items.append(DefaultItem(parts[0]))
            continue
        times = parse_time_range(parts[1].strip())
        if times is None:
            raise SlotTextParseError("Cannot parse time range in entry", token)
        items.append(SpecifiedItem(parts[0], times[0], times[1]))
    return items


def names(text: str) -> List[str]:
    """Sorted employee names of a cell"""
    return sorted(item.name for item in parse(text))


def format_item(item: Item) -> str:
    if isinstance(item, SpecifiedItem):
        return f"{item.name} {format_hhmm(item.start)}-{format_hhmm(item.stop)}"
    return item.name


def format_items(items: Iterable[Item]) -> str:
    return ", ".join(format_item(item) for item in items)


def remove_employees(text: str, employees: Iterable[str]) -> str:
    """Remove the named employees, with their time ranges, from cell text"""
    employees = [e for e in employees if e]
    if not employees:
        return text
    alternation = "|".join(re.escape(e) for e in employees)
    pattern = re.compile(
        rf"\s*(?<!\w)(?:{alternation})(?:\s+{_TIME_RANGE_SUFFIX})?(?!\w)(?:\s*,)?"
    )
    result = pattern.sub("", text)
    return re.sub(r"^[\s,]+|[\s,]+$", "", result)
