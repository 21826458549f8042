"""
Notes store

Free text notes attached to a date and a row index within that date's block
of the schedule.  Kept in the "notes" section of the data file, sorted by
date and index.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Iterator, List

from .data_manager import DataManager
from .dateutils import in_range_inclusive
from .errors import ValueConversionError
from .values import as_number, as_string


@dataclass(frozen=True)
class Note:
    date: date
    index: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "index": self.index, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Note':
        try:
            day = date.fromisoformat(as_string(data.get("date")))
        except ValueError:
            raise ValueConversionError("ISO date", data.get("date")) from None
        return cls(day, int(as_number(data.get("index"))), as_string(data.get("text")))


def _sort_key(note: Note):
    return (note.date, note.index)


class NoteStore:
    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    def _notes(self) -> List[Note]:
        return [Note.from_dict(d) for d in self.data_manager.data.setdefault("notes", [])]

    def _write(self, notes: Iterable[Note]) -> None:
        self.data_manager.data["notes"] = [n.to_dict() for n in sorted(notes, key=_sort_key)]

    def for_each_in_range(self, date_from: date, date_until: date) -> Iterator[Note]:
        for note in self._notes():
            if in_range_inclusive(note.date, date_from, date_until):
                yield note

    def add(self, notes: Iterable[Note]) -> None:
        self._write(self._notes() + list(notes))

    def add_or_replace(self, note: Note) -> None:
        """Add a note or replace the text of the one on the same date and index"""
        self._write([n for n in self._notes() if _sort_key(n) != _sort_key(note)] + [note])

    def delete_matching(self, day: date, index: int) -> None:
        self._write([n for n in self._notes() if _sort_key(n) != (day, index)])

    def replace_range(self, date_from: date, date_until: date, notes: Iterable[Note]) -> None:
        outside = [n for n in self._notes()
                   if not in_range_inclusive(n.date, date_from, date_until)]
        self._write(outside + list(notes))

    def commit(self) -> bool:
        return self.data_manager.save_data()
