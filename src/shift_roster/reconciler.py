"""
Schedule/Log Reconciler

Compares the entries expressed on the schedule grid with the entries in the
log and patches the log to match the grid.  Both sides are walked once in
slot order, like the merge step of merge sort, so both must be sorted by
slot_sort_key.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple
import logging

from . import slot_text
from .dateutils import in_range_inclusive
from .entry import Assignment, Entry, Slot, slot_sort_key
from .log_store import LogStore
from .schedule_sheet import ScheduleSheet
from .survey import SurveyResponse, unique_responses
from .values import as_text, get

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diff:
    """A slot whose assignments differ between log and grid"""
    slot: Slot
    log_assignments: Tuple[Assignment, ...]
    grid_assignments: Tuple[Assignment, ...]

    @property
    def employees_in_log(self) -> Tuple[str, ...]:
        return tuple(a.employee for a in self.log_assignments)

    @property
    def employees_in_grid(self) -> Tuple[str, ...]:
        return tuple(a.employee for a in self.grid_assignments)

    @property
    def kind(self) -> str:
        if not self.log_assignments:
            return "added"
        if not self.grid_assignments:
            return "removed"
        return "changed"


def diff(grid_entries: Sequence[Entry], log_entries: Sequence[Entry]) -> List[Diff]:
    """Merge both slot-ordered entry lists and report every slot that differs"""
    result = []
    g = 0
    d = 0
    while g < len(grid_entries) and d < len(log_entries):
        grid_key = slot_sort_key(grid_entries[g])
        log_key = slot_sort_key(log_entries[d])
        if log_key < grid_key:
            result.append(Diff(log_entries[d].slot, log_entries[d].assignments, ()))
            d += 1
        elif log_key > grid_key:
            result.append(Diff(grid_entries[g].slot, (), grid_entries[g].assignments))
            g += 1
        else:
            if log_entries[d].assignments != grid_entries[g].assignments:
                result.append(Diff(grid_entries[g].slot, log_entries[d].assignments,
                                   grid_entries[g].assignments))
            d += 1
            g += 1
    for entry in log_entries[d:]:
        result.append(Diff(entry.slot, entry.assignments, ()))
    for entry in grid_entries[g:]:
        result.append(Diff(entry.slot, (), entry.assignments))
    return result


class Reconciler:
    """Keeps the log consistent with the schedule grid"""

    def __init__(self, sheet: ScheduleSheet, log_store: LogStore):
        self.sheet = sheet
        self.log_store = log_store

    def scan_grid(self) -> List[Entry]:
        """Every non-empty slot on the grid, in slot order"""
        mapper = self.sheet.mapper()
        layout = mapper.layout
        data = self.sheet.entries_block()
        entries = []
        for slot in mapper.each_slot():
            row, column = mapper.slot_to_cell(slot)
            text = get(data, row - layout.first_entry_row,
                       column - layout.first_entry_column, as_text)
            items = slot_text.parse(text)
            if items:
                entries.append(Entry.from_items(slot, items))
        return entries

    def log_entries(self) -> List[Entry]:
        date_from, date_until = self.sheet.date_range()
        return self.log_store.entries_in_range(date_from, date_until)

    def compare(self) -> List[Diff]:
        return diff(self.scan_grid(), self.log_entries())

    def sync(self, commit: bool = True) -> List[Diff]:
        """Make the log match the grid, replacing each differing slot wholesale"""
        diffs = self.compare()
        for d in diffs:
            self.log_store.remove_slot(d.slot)
            if d.grid_assignments:
                self.log_store.add([Entry(d.slot, d.grid_assignments)])
        if diffs:
            logger.info("Synchronised %d slots from schedule to log", len(diffs))
        if commit:
            self.log_store.commit()
        return diffs

    def place_survey(self, responses: Iterable[SurveyResponse]) -> List[Entry]:
        """
        Add one entry per unique survey response for employees that have a
        location chosen on the schedule, then redraw the schedule.
        """
        self.sync(commit=False)
        date_from, date_until = self.sheet.date_range()
        who_and_where = self.sheet.employees_and_locations()
        already = {(slot_sort_key(e), name) for e in self.log_entries() for name in e.employees}
        entries = []
        for r in unique_responses(responses):
            if r.employee not in who_and_where:
                continue
            if not in_range_inclusive(r.date, date_from, date_until):
                continue
            slot = Slot(r.date, who_and_where[r.employee], r.shift)
            if (slot_sort_key(slot), r.employee) not in already:
                entries.append(Entry.of(slot, [r.employee]))
        self.log_store.add(entries)
        self.log_store.commit()
        self.sheet.setup(date_from, date_until)
        logger.info("Placed %d survey entries on the schedule", len(entries))
        return entries
