"""
Shift Catalog for the Shift Roster system

Defines the three standard shifts, the classification of arbitrary time
ranges into morning, afternoon and whole-day shifts, and the grid display
offset of each kind.  All times are minutes since midnight.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Tuple
import logging

from .errors import UnknownShiftError

logger = logging.getLogger(__name__)


class ShiftKind(Enum):
    MORNING = 0
    AFTERNOON = 1
    WHOLE_DAY = 2

    @property
    def german_name(self) -> str:
        return ["Vormittags", "Nachmittags", "Ganztags"][self.value]


# (row offset, column offset) of a shift inside its date/location block
DISPLAY_OFFSETS: Dict[ShiftKind, Tuple[int, int]] = {
    ShiftKind.WHOLE_DAY: (0, 0),
    ShiftKind.MORNING: (1, 0),
    ShiftKind.AFTERNOON: (1, 1),
}


def hhmm(hours: int, minutes: int = 0) -> int:
    """Minutes since midnight"""
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def classify(start: int, stop: int) -> ShiftKind:
    """Classify a time range by the hours it starts and stops at"""
    starts_early = start // 60 <= 12
    stops_early = stop // 60 <= 14
    if starts_early:
        return ShiftKind.MORNING if stops_early else ShiftKind.WHOLE_DAY
    if stops_early:
        # Late start and early stop: kept as whole day, see DESIGN.md
        logger.info("In the tricky case: %s - %s", start // 60, stop // 60)
        return ShiftKind.WHOLE_DAY
    return ShiftKind.AFTERNOON


@dataclass(frozen=True)
class Shift:
    """A named time-of-day definition"""
    name: str
    start: int
    stop: int
    break_minutes: int
    kind: ShiftKind

    @property
    def display_offset(self) -> Tuple[int, int]:
        return DISPLAY_OFFSETS[self.kind]

    @property
    def duration(self) -> int:
        """Wall clock minutes from start to stop"""
        return self.stop - self.start

    @property
    def worktime(self) -> int:
        return self.duration - self.break_minutes

    def overlaps(self, other: 'Shift') -> bool:
        return self.start < other.stop and other.start < self.stop

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.stop)}"

    @staticmethod
    def create(start: int, stop: int, break_minutes: int) -> 'Shift':
        """Classified shift for an arbitrary time range, one instance per key"""
        return _create(start, stop, break_minutes)


@lru_cache(maxsize=None)
def _create(start: int, stop: int, break_minutes: int) -> Shift:
    name = f"{format_hhmm(start)}-{format_hhmm(stop)}"
    return Shift(name, start, stop, break_minutes, classify(start, stop))


def _catalog_shift(name: str, start: int, stop: int, break_minutes: int) -> Shift:
    return Shift(name, start, stop, break_minutes, classify(start, stop))


WHOLE_DAY = _catalog_shift("Ganztags", hhmm(9, 45), hhmm(19), 60)
FIRST_HALF = _catalog_shift("Vormittags", hhmm(9, 45), hhmm(14), 0)
SECOND_HALF = _catalog_shift("Nachmittags", hhmm(14), hhmm(19), 0)


def all_shifts() -> List[Shift]:
    """Catalog shifts in slot order (by name)"""
    return sorted([WHOLE_DAY, FIRST_HALF, SECOND_HALF], key=lambda s: s.name)


@lru_cache(maxsize=None)
def _by_name() -> Dict[str, Shift]:
    return {s.name: s for s in all_shifts()}


@lru_cache(maxsize=None)
def _by_kind() -> Dict[ShiftKind, Shift]:
    return {s.kind: s for s in all_shifts()}


def shift_by_name(name: str) -> Shift:
    try:
        return _by_name()[name]
    except KeyError:
        raise UnknownShiftError(name) from None


def shift_for_kind(kind: ShiftKind) -> Shift:
    return _by_kind()[kind]
