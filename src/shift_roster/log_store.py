"""
Log Store for the Shift Roster system

The log keeps every assignment flattened to one line per employee per slot,
sorted by date, location, shift (descending) and employee, so the lines of one
slot are always consecutive.  The lines live in the "log" section of the data
file managed by DataManager.
"""

from dataclasses import dataclass
from datetime import date
from itertools import groupby
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from .data_manager import DataManager
from .dateutils import in_range_inclusive
from .entry import Assignment, Entry, Slot, slot_sort_key
from .errors import ValueConversionError
from .locations import location_by_name
from .shifts import all_shifts, format_hhmm, shift_by_name
from .values import as_minutes, as_number, as_string

logger = logging.getLogger(__name__)

# Reverse name order of the catalog shifts, for the descending shift column
_SHIFT_RANK = {s.name: rank for rank, s in enumerate(reversed(all_shifts()))}


@dataclass(frozen=True)
class LogLine:
    """One employee working one slot"""
    date: date
    employee: str
    location: str
    shift: str
    start: int
    stop: int
    break_minutes: int
    worktime: int

    def sort_key(self) -> Tuple[date, str, int, str]:
        return (self.date, self.location, _SHIFT_RANK.get(self.shift, -1), self.employee)

    def slot(self) -> Slot:
        return Slot(self.date, location_by_name(self.location), shift_by_name(self.shift))

    def assignment(self) -> Assignment:
        shift = shift_by_name(self.shift)
        if (self.start, self.stop) == (shift.start, shift.stop):
            return Assignment(self.employee)
        return Assignment(self.employee, self.start, self.stop)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "employee": self.employee,
            "location": self.location,
            "shift": self.shift,
            "start": format_hhmm(self.start),
            "stop": format_hhmm(self.stop),
            "break": format_hhmm(self.break_minutes),
            "worktime": self.worktime
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogLine':
        try:
            day = date.fromisoformat(as_string(data.get("date")))
        except ValueError:
            raise ValueConversionError("ISO date", data.get("date")) from None
        return cls(
            date=day,
            employee=as_string(data.get("employee")),
            location=as_string(data.get("location")),
            shift=as_string(data.get("shift")),
            start=as_minutes(data.get("start")),
            stop=as_minutes(data.get("stop")),
            break_minutes=as_minutes(data.get("break")),
            worktime=int(as_number(data.get("worktime")))
        )

    @classmethod
    def for_assignment(cls, slot: Slot, assignment: Assignment) -> 'LogLine':
        shift = slot.shift
        if assignment.is_override:
            start, stop, break_minutes = assignment.start, assignment.stop, 0
            worktime = assignment.duration
        else:
            start, stop, break_minutes = shift.start, shift.stop, shift.break_minutes
            worktime = shift.worktime
        return cls(slot.date, assignment.employee, slot.location.name, shift.name,
                   start, stop, break_minutes, worktime)


def entry_to_lines(entry: Entry) -> List[LogLine]:
    return [LogLine.for_assignment(entry.slot, a) for a in entry.assignments]


class LogStore:
    """Sorted, flattened record of all entries"""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    @property
    def _rows(self) -> List[Dict[str, Any]]:
        return self.data_manager.data.setdefault("log", [])

    def _write_lines(self, lines: Iterable[LogLine]) -> None:
        self.data_manager.data["log"] = [l.to_dict() for l in sorted(lines, key=LogLine.sort_key)]

    def for_each(self) -> Iterator[LogLine]:
        """Every line in storage order"""
        for row in self._rows:
            yield LogLine.from_dict(row)

    def for_each_grouped(self) -> Iterator[Entry]:
        """One entry per run of consecutive lines on the same slot"""
        for _, lines in groupby(
                self.for_each(), key=lambda l: (l.date, l.location, l.shift)):
            lines = list(lines)
            yield Entry(lines[0].slot(), tuple(l.assignment() for l in lines))

    def entries_in_range(self, date_from: date, date_until: date) -> List[Entry]:
        """Entries within the range, in slot sort order"""
        entries = [e for e in self.for_each_grouped()
                   if in_range_inclusive(e.date, date_from, date_until)]
        return sorted(entries, key=slot_sort_key)

    def add(self, entries: Iterable[Entry]) -> None:
        """Add entries, keeping the log sorted"""
        new_lines = [line for e in entries for line in entry_to_lines(e)]
        if not new_lines:
            return
        self._write_lines(list(self.for_each()) + new_lines)
        logger.debug("Added %d log lines", len(new_lines))

    def remove_matching(self, day: date, location_name: str, shift_name: str) -> int:
        """Remove all lines of one slot, returns the number of lines removed"""
        rows = self._rows

        def matches(row: Dict[str, Any]) -> bool:
            return (row["date"] == day.isoformat() and row["location"] == location_name
                    and row["shift"] == shift_name)

        # Given the sorting, all matching rows are consecutive
        first = 0
        while first < len(rows) and not matches(rows[first]):
            first += 1
        if first >= len(rows):
            return 0
        count = 1
        while first + count < len(rows) and matches(rows[first + count]):
            count += 1
        del rows[first:first + count]
        return count

    def remove_slot(self, slot: Slot) -> int:
        return self.remove_matching(slot.date, slot.location.name, slot.shift.name)

    def replace_range(self, date_from: date, date_until: date, entries: Iterable[Entry]) -> None:
        """Replace every line within the date range by the given entries"""
        outside = [l for l in self.for_each()
                   if not in_range_inclusive(l.date, date_from, date_until)]
        self._write_lines(outside + [line for e in entries for line in entry_to_lines(e)])

    def clear(self) -> None:
        self.data_manager.data["log"] = []

    def worktime_by_employee(self, date_from: Optional[date] = None,
                             date_until: Optional[date] = None) -> Dict[str, int]:
        """Minutes worked per employee, optionally within a date range"""
        totals: Dict[str, int] = {}
        for line in self.for_each():
            if date_from and date_until and not in_range_inclusive(line.date, date_from, date_until):
                continue
            totals[line.employee] = totals.get(line.employee, 0) + line.worktime
        return totals

    def commit(self) -> bool:
        return self.data_manager.save_data()
