"""
Edit Dispatcher for the Shift Roster system

Routes single cell edit notifications from the schedule sheet.  Bulk edits
(paste, sort, undo) carry no before/after values and trigger a full
resynchronisation; single cell edits of a slot update the log for that slot
only.  Writes made while handling an edit may raise further notifications
synchronously, so the dispatcher ignores calls while it is already running.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Set
import logging

from . import slot_text
from .entry import Entry, Slot
from .log_store import LogStore
from .notes import Note, NoteStore
from .reconciler import Reconciler
from .schedule_sheet import ScheduleSheet

logger = logging.getLogger(__name__)


class EditKind(Enum):
    INSERT = "insert"
    CHANGE = "change"
    CLEAR = "clear"
    MASS_CHANGE = "mass-change"


@dataclass(frozen=True)
class CellEdit:
    """An edit notification for the range starting at (row, column)"""
    row: int
    column: int
    value: Any = None
    old_value: Any = None
    num_rows: int = 1
    num_columns: int = 1

    @property
    def is_single_cell(self) -> bool:
        return self.num_rows == 1 and self.num_columns == 1


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def classify_edit(edit: CellEdit) -> EditKind:
    if not edit.is_single_cell:
        return EditKind.MASS_CHANGE
    if edit.old_value is None and edit.value is None:
        return EditKind.MASS_CHANGE
    if _is_empty(edit.value):
        return EditKind.CLEAR
    if _is_empty(edit.old_value):
        return EditKind.INSERT
    return EditKind.CHANGE


class EditDispatcher:
    def __init__(self, sheet: ScheduleSheet, reconciler: Reconciler,
                 log_store: LogStore, note_store: NoteStore,
                 migrate_reassigned: bool = True):
        self.sheet = sheet
        self.reconciler = reconciler
        self.log_store = log_store
        self.note_store = note_store
        self.migrate_reassigned = migrate_reassigned
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def handle(self, edit: CellEdit) -> Optional[EditKind]:
        """Process one edit; returns its kind, or None for a recursive call"""
        if self._busy:
            logger.info("Recursive edit callback -- not doing anything")
            return None
        self._busy = True
        logger.debug("--> edit callback (%s, %s)", edit.row, edit.column)
        try:
            kind = classify_edit(edit)
            if kind is EditKind.MASS_CHANGE:
                self._mass_change()
            else:
                self._single_cell(kind, edit)
            return kind
        finally:
            self._busy = False
            logger.debug("<-- edit callback")

    def _mass_change(self) -> None:
        self.reconciler.sync(commit=False)
        self.sheet.save_notes()
        self.log_store.commit()

    def _single_cell(self, kind: EditKind, edit: CellEdit) -> None:
        # single cell errors are logged and dropped
        try:
            slot = self.sheet.mapper().cell_to_slot(edit.row, edit.column)
            if slot is not None:
                self._slot_edit(kind, slot, edit)
            elif edit.column == self.sheet.note_column():
                self._note_edit(kind, edit)
            else:
                logger.debug("Edit outside the entry region ignored")
        except Exception as e:
            logger.error(f"Error handling edit at ({edit.row}, {edit.column}): {e}", exc_info=True)

    def _slot_edit(self, kind: EditKind, slot: Slot, edit: CellEdit) -> None:
        text = "" if kind is EditKind.CLEAR else str(edit.value)
        items = slot_text.parse(text)
        self.log_store.remove_slot(slot)
        if items:
            self.log_store.add([Entry.from_items(slot, items)])
        self.log_store.commit()
        if kind is not EditKind.CLEAR and self.migrate_reassigned:
            old_names = set(slot_text.names(str(edit.old_value or "")))
            added = {item.name for item in items} - old_names
            if added:
                self._migrate(slot, added)

    def _migrate(self, slot: Slot, employees: Set[str]) -> None:
        """Remove employees from other slots on the same day whose shift overlaps"""
        changed = 0
        for other in self.sheet.mapper().each_slot(slot.date):
            if other == slot:
                continue
            if not other.shift.overlaps(slot.shift):
                continue
            text = self.sheet.read_slot(other)
            present = employees.intersection(slot_text.names(text))
            if not present:
                continue
            remaining = slot_text.remove_employees(text, present)
            logger.info("Moving %s away from %s", ", ".join(sorted(present)), other)
            self.sheet.write_slot(other, remaining)
            self.log_store.remove_slot(other)
            items = slot_text.parse(remaining)
            if items:
                self.log_store.add([Entry.from_items(other, items)])
            changed += 1
        if changed:
            self.log_store.commit()

    def _note_edit(self, kind: EditKind, edit: CellEdit) -> None:
        position = self.sheet.note_position(edit.row)
        if position is None:
            # notes outside the date rows are ignored
            return
        day, index = position
        if kind is EditKind.CLEAR:
            self.note_store.delete_matching(day, index)
        else:
            self.note_store.add_or_replace(Note(day, index, str(edit.value)))
        self.note_store.commit()
