"""
Slots and entries of the roster

A Slot is a date, a location and a shift.  An Entry is a slot together with
the employees assigned to it.  slot_sort_key is the one ordering shared by the
grid scan and the log; the merge diff depends on both honoring it.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Tuple

from .locations import Location
from .shifts import Shift
from .slot_text import DefaultItem, Item, SpecifiedItem


@dataclass(frozen=True)
class Slot:
    date: date
    location: Location
    shift: Shift

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.location.name} {self.shift.name}"


def slot_sort_key(slot) -> Tuple[date, str, str]:
    """Total order of slots: date, then location name, then shift name"""
    if isinstance(slot, Entry):
        slot = slot.slot
    return (slot.date, slot.location.name, slot.shift.name)


@dataclass(frozen=True)
class Assignment:
    """One employee on a slot, with optional explicit times"""
    employee: str
    start: Optional[int] = None
    stop: Optional[int] = None

    @property
    def is_override(self) -> bool:
        return self.start is not None and self.stop is not None

    @property
    def duration(self) -> Optional[int]:
        if not self.is_override:
            return None
        return self.stop - self.start

    def as_item(self) -> Item:
        if self.is_override:
            return SpecifiedItem(self.employee, self.start, self.stop)
        return DefaultItem(self.employee)

    @classmethod
    def from_item(cls, item: Item) -> 'Assignment':
        if isinstance(item, SpecifiedItem):
            return cls(item.name, item.start, item.stop)
        return cls(item.name)


def normalize(assignments: Iterable[Assignment], shift: Optional[Shift] = None) -> Tuple[Assignment, ...]:
    """
    Sort by employee, keeping the first assignment of a repeated name.  An
    override spelling out the shift's own times becomes a default assignment.
    """
    seen = {}
    for a in assignments:
        if shift is not None and (a.start, a.stop) == (shift.start, shift.stop):
            a = Assignment(a.employee)
        seen.setdefault(a.employee, a)
    return tuple(seen[name] for name in sorted(seen))


@dataclass(frozen=True)
class Entry:
    slot: Slot
    assignments: Tuple[Assignment, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "assignments", normalize(self.assignments, self.slot.shift))

    @classmethod
    def of(cls, slot: Slot, employees: Iterable[str]) -> 'Entry':
        return cls(slot, tuple(Assignment(e) for e in employees))

    @classmethod
    def from_items(cls, slot: Slot, items: Iterable[Item]) -> 'Entry':
        return cls(slot, tuple(Assignment.from_item(i) for i in items))

    @property
    def employees(self) -> Tuple[str, ...]:
        return tuple(a.employee for a in self.assignments)

    @property
    def date(self) -> date:
        return self.slot.date

    @property
    def location(self) -> Location:
        return self.slot.location

    @property
    def shift(self) -> Shift:
        return self.slot.shift

    def items(self) -> Tuple[Item, ...]:
        return tuple(a.as_item() for a in self.assignments)
