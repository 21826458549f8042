"""
Grid store and coordinate mapping for the schedule sheet

The schedule body has one block of rows per date and one block of columns per
location.  Within a block the whole-day shift occupies the merged top row and
the morning and afternoon shifts the left and right halves of the bottom row.
A gutter column separates location blocks.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import logging

from openpyxl.worksheet.worksheet import Worksheet

from . import config
from .dateutils import add_days, days_between, each_day, in_range_inclusive
from .entry import Slot
from .errors import InconsistentCellError
from .locations import Location, all_locations
from .shifts import WHOLE_DAY, Shift, all_shifts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergedRun:
    """A run of columns in one row sharing a single value"""
    first_column: int
    last_column: int
    value: Any

    def contains(self, column: int) -> bool:
        return self.first_column <= column <= self.last_column


class WorksheetGridStore:
    """Cell level access to an openpyxl worksheet (1-based rows and columns)"""

    def __init__(self, worksheet: Worksheet):
        self.worksheet = worksheet

    @property
    def title(self) -> str:
        return self.worksheet.title

    def read_value(self, row: int, column: int) -> Any:
        return self.worksheet.cell(row=row, column=column).value

    def read_cell(self, row: int, column: int) -> str:
        """Cell content as text, empty cells read as the empty string"""
        value = self.read_value(row, column)
        if value is None:
            return ""
        return str(value)

    def read_values(self, row: int, column: int, num_rows: int,
                    num_columns: int) -> List[List[Any]]:
        """Raw values of a rectangular range, row by row"""
        return [
            [self.read_value(r, c) for c in range(column, column + num_columns)]
            for r in range(row, row + num_rows)
        ]

    def write_cell(self, row: int, column: int, value: Any) -> None:
        self.worksheet.cell(row=row, column=column).value = value

    def write_cells(self, row: int, column: int, values: Sequence[Sequence[Any]]) -> None:
        """Write a rectangular block of values with its top left at (row, column)"""
        for r, row_values in enumerate(values):
            for c, value in enumerate(row_values):
                self.write_cell(row + r, column + c, value)

    def merged_ranges_of(self, row: int, column_start: int, column_end: int) -> List[MergedRun]:
        """
        Decode one row into ordered runs of merged or single cells covering
        column_start..column_end.  A merged range contributes the value of its
        top left cell.
        """
        spans: Dict[int, Tuple[int, int]] = {}
        for rng in self.worksheet.merged_cells.ranges:
            if rng.min_row <= row <= rng.max_row:
                spans[rng.min_col] = (rng.max_col, rng.min_row)
        result = []
        column = column_start
        while column <= column_end:
            span = next(((first, last, top) for first, (last, top) in spans.items()
                         if first <= column <= last), None)
            if span is None:
                result.append(MergedRun(column, column, self.read_value(row, column)))
                column += 1
            else:
                first, last, top = span
                result.append(MergedRun(first, last, self.read_value(top, first)))
                column = last + 1
        return result

    def merge_across(self, row: int, column: int, num_columns: int) -> None:
        self.worksheet.merge_cells(start_row=row, start_column=column,
                                   end_row=row, end_column=column + num_columns - 1)

    def merge_down(self, row: int, column: int, num_rows: int) -> None:
        self.worksheet.merge_cells(start_row=row, start_column=column,
                                   end_row=row + num_rows - 1, end_column=column)

    def clear(self) -> None:
        """Remove all merges, values and styles"""
        for rng in list(self.worksheet.merged_cells.ranges):
            self.worksheet.unmerge_cells(rng.coord)
        if self.worksheet.max_row > 0:
            self.worksheet.delete_rows(1, self.worksheet.max_row)

    def last_row(self) -> int:
        return self.worksheet.max_row

    def last_column(self) -> int:
        return self.worksheet.max_column


@dataclass(frozen=True)
class GridLayout:
    """Geometry of the entry region of the schedule sheet"""
    date_from: date
    date_until: date
    first_entry_row: int = config.FIRST_ENTRY_ROW
    first_entry_column: int = config.FIRST_ENTRY_COLUMN
    rows_per_entry: int = config.ROWS_PER_ENTRY
    columns_per_location: int = config.COLUMNS_PER_LOCATION

    @property
    def num_days(self) -> int:
        return days_between(self.date_from, self.date_until) + 1


class GridCoordinateMapper:
    """Translate between slots and grid cell positions"""

    def __init__(self, layout: GridLayout, locations: Optional[List[Location]] = None):
        self.layout = layout
        self.locations = locations if locations is not None else all_locations()
        self._shift_at_offset = {s.display_offset: s for s in all_shifts()}

    # Rows

    def date_to_row(self, d: date) -> int:
        """Top row of the block for the given date"""
        layout = self.layout
        return layout.first_entry_row + days_between(layout.date_from, d) * layout.rows_per_entry

    def row_to_date(self, row: int) -> Optional[date]:
        layout = self.layout
        if row < layout.first_entry_row:
            return None
        d = add_days(layout.date_from, (row - layout.first_entry_row) // layout.rows_per_entry)
        if not in_range_inclusive(d, layout.date_from, layout.date_until):
            return None
        return d

    # Columns

    def location_to_column(self, location: Location) -> int:
        """Left column of the block for the given location"""
        layout = self.layout
        return layout.first_entry_column + location.index * layout.columns_per_location

    def note_column(self) -> int:
        layout = self.layout
        return layout.first_entry_column + len(self.locations) * layout.columns_per_location + 1

    def entry_width(self) -> int:
        return len(self.locations) * self.layout.columns_per_location

    # Slots

    def slot_to_cell(self, slot: Slot) -> Tuple[int, int]:
        row_offset, column_offset = slot.shift.display_offset
        return (self.date_to_row(slot.date) + row_offset,
                self.location_to_column(slot.location) + column_offset)

    def _shift_at(self, vpart: int, hpart: int) -> Optional[Shift]:
        shift = self._shift_at_offset.get((vpart, hpart))
        if shift is None and vpart == WHOLE_DAY.display_offset[0]:
            # the whole-day row is merged across both data columns
            shift = WHOLE_DAY
        return shift

    def cell_to_slot(self, row: int, column: int) -> Optional[Slot]:
        layout = self.layout
        if column < layout.first_entry_column:
            return None
        d = self.row_to_date(row)
        if d is None:
            return None
        loc_ndx, hpart = divmod(column - layout.first_entry_column, layout.columns_per_location)
        vpart = (row - layout.first_entry_row) % layout.rows_per_entry
        if not 0 <= loc_ndx < len(self.locations):
            return None
        if hpart == layout.columns_per_location - 1:
            # gutter between location blocks
            return None
        shift = self._shift_at(vpart, hpart)
        if shift is None:
            logger.warning("Cell maps to no shift: %s", InconsistentCellError(row, column))
            return None
        return Slot(d, self.locations[loc_ndx], shift)

    def each_slot(self, day: Optional[date] = None) -> Iterator[Slot]:
        """Every slot in the date range, or on one day, in slot sort order"""
        locations = sorted(self.locations, key=lambda loc: loc.name)
        shifts = all_shifts()
        days = [day] if day is not None else each_day(self.layout.date_from, self.layout.date_until)
        for d in days:
            for location in locations:
                for shift in shifts:
                    yield Slot(d, location, shift)
