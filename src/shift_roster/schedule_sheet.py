"""
Schedule Sheet for the Shift Roster system

Lays out the schedule grid on a worksheet: the von/bis date range in the first
row, the employee roster on the left, one box per date and location with a
cell for each standard shift, and a notes column on the right.
"""

from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar
import logging

from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.datavalidation import DataValidation

from . import config
from . import slot_text
from .dateutils import each_day, is_weekend
from .employees import EmployeeDirectory
from .entry import Entry, Slot
from .errors import ValueConversionError
from .grid import GridCoordinateMapper, GridLayout, WorksheetGridStore
from .locations import Location, all_locations, location_by_name
from .log_store import LogStore
from .notes import Note, NoteStore
from .values import as_date, as_text, get

logger = logging.getLogger(__name__)

E = TypeVar("E")


class ScheduleSheet:
    """The visual schedule grid and its header regions"""

    def __init__(self, grid: WorksheetGridStore, log_store: LogStore,
                 note_store: NoteStore, directory: EmployeeDirectory):
        self.grid = grid
        self.log_store = log_store
        self.note_store = note_store
        self.directory = directory
        self._date_range: Optional[Tuple[date, date]] = None
        self._mapper: Optional[GridCoordinateMapper] = None

    def _read(self, row: int, column: int, conv: Callable[[Any], E]) -> E:
        try:
            return conv(self.grid.read_value(row, column))
        except ValueConversionError as e:
            raise e.at(row, column)

    def date_range(self) -> Tuple[date, date]:
        """The range given by the von and bis cells"""
        if self._date_range is None:
            self._date_range = (self._read(1, 2, as_date), self._read(1, 4, as_date))
        return self._date_range

    def mapper(self) -> GridCoordinateMapper:
        if self._mapper is None:
            date_from, date_until = self.date_range()
            self._mapper = GridCoordinateMapper(GridLayout(date_from, date_until))
        return self._mapper

    def note_column(self) -> int:
        return self.mapper().note_column()

    # Slots

    def read_slot(self, slot: Slot) -> str:
        row, column = self.mapper().slot_to_cell(slot)
        return self._read(row, column, as_text)

    def write_slot(self, slot: Slot, text: str) -> None:
        row, column = self.mapper().slot_to_cell(slot)
        self.grid.write_cell(row, column, text or None)

    def entries_block(self) -> List[List[Any]]:
        """Raw values of the whole entry region"""
        mapper = self.mapper()
        layout = mapper.layout
        return self.grid.read_values(layout.first_entry_row, layout.first_entry_column,
                                     layout.num_days * layout.rows_per_entry,
                                     mapper.entry_width())

    @staticmethod
    def render_entry(entry: Entry) -> str:
        return slot_text.format_items(entry.items())

    def place_entries(self) -> int:
        """Write the log's entries within the date range onto the grid"""
        date_from, date_until = self.date_range()
        mapper = self.mapper()
        placed = 0
        for entry in self.log_store.entries_in_range(date_from, date_until):
            row, column = mapper.slot_to_cell(entry.slot)
            logger.debug("placing %s at (%s, %s)", entry.slot, row, column)
            self.grid.write_cell(row, column, self.render_entry(entry))
            placed += 1
        return placed

    # Employees

    def employees_and_locations(self) -> Dict[str, Location]:
        """Employees with a location chosen in the roster section, by name"""
        employees = self.directory.all()
        if not employees:
            return {}
        data = self.grid.read_values(config.FIRST_ENTRY_ROW, config.EMPLOYEE_NAME_COLUMN,
                                     len(employees), config.EMPLOYEE_LOCATION_COLUMN)
        result = {}
        for n in range(len(data)):
            name = get(data, n, 0, as_text)
            location = get(data, n, config.EMPLOYEE_LOCATION_COLUMN - 1, as_text)
            if name and location:
                result[name] = location_by_name(location)
        return result

    def _location_choices(self) -> Dict[str, Any]:
        """Raw location choice per employee name, read before the sheet is cleared"""
        choices = {}
        for row in range(config.FIRST_ENTRY_ROW, self.grid.last_row() + 1):
            name = self.grid.read_value(row, config.EMPLOYEE_NAME_COLUMN)
            choice = self.grid.read_value(row, config.EMPLOYEE_LOCATION_COLUMN)
            if isinstance(name, str) and choice is not None:
                choices[name] = choice
        return choices

    def _setup_employee_section(self, choices: Dict[str, Any]) -> None:
        ws = self.grid.worksheet
        bold = Font(bold=True)
        header_row = config.FIRST_ENTRY_ROW - 1
        for column, title in enumerate(["Mitarbeiter", "Stunden", ""], start=1):
            ws.cell(row=header_row, column=column, value=title).font = bold
        date_from, date_until = self.date_range()
        minutes = self.log_store.worktime_by_employee(date_from, date_until)
        employees = self.directory.all()
        for n, emp in enumerate(employees):
            row = config.FIRST_ENTRY_ROW + n
            self.grid.write_cell(row, config.EMPLOYEE_NAME_COLUMN, emp.name)
            self.grid.write_cell(row, config.EMPLOYEE_HOURS_COLUMN,
                                 round(minutes.get(emp.name, 0) / 60, 2))
            self.grid.write_cell(row, config.EMPLOYEE_LOCATION_COLUMN, choices.get(emp.name))
        if employees:
            choices = ",".join(loc.name for loc in all_locations())
            validation = DataValidation(type="list", formula1=f'"{choices}"', allow_blank=True)
            ws.add_data_validation(validation)
            first = config.FIRST_ENTRY_ROW
            last = first + len(employees) - 1
            validation.add(f"C{first}:C{last}")

    # Notes

    def note_position(self, row: int) -> Optional[Tuple[date, int]]:
        """Date and index within that date's block of a notes column row"""
        mapper = self.mapper()
        day = mapper.row_to_date(row)
        if day is None:
            return None
        return day, row - mapper.date_to_row(day)

    def for_each_note(self) -> Iterator[Note]:
        mapper = self.mapper()
        layout = mapper.layout
        column = mapper.note_column()
        for row in range(layout.first_entry_row,
                         layout.first_entry_row + layout.num_days * layout.rows_per_entry):
            text = self._read(row, column, as_text)
            if text:
                day, index = self.note_position(row)
                yield Note(day, index, text)

    def save_notes(self) -> None:
        date_from, date_until = self.date_range()
        self.note_store.replace_range(date_from, date_until, list(self.for_each_note()))

    def _setup_note_section(self) -> None:
        mapper = self.mapper()
        column = mapper.note_column()
        self.grid.write_cell(1, column, "Notizen")
        self.grid.worksheet.cell(row=1, column=column).font = Font(bold=True)
        fill = PatternFill("solid", fgColor=config.NOTE_COLOR)
        layout = mapper.layout
        for row in range(layout.first_entry_row,
                         layout.first_entry_row + layout.num_days * layout.rows_per_entry):
            self.grid.worksheet.cell(row=row, column=column).fill = fill
        date_from, date_until = self.date_range()
        for note in self.note_store.for_each_in_range(date_from, date_until):
            self.grid.write_cell(mapper.date_to_row(note.date) + note.index, column, note.text)

    # Layout

    def setup(self, date_from: date, date_until: date) -> None:
        """Clear the sheet, draw the grid for the range and place log entries"""
        ws = self.grid.worksheet
        choices = self._location_choices()
        self.grid.clear()
        ws.data_validations.dataValidation = []
        self._date_range = (date_from, date_until)
        self._mapper = None

        ws.freeze_panes = ws.cell(row=2, column=config.INDEX_COLUMN)
        self.grid.write_cells(1, 1, [["Von", date_from, "bis", date_until]])
        for column in (1, 3):
            ws.cell(row=1, column=column).font = Font(bold=True)
            ws.cell(row=1, column=column).alignment = Alignment(horizontal="right")
        for column in (2, 4):
            ws.cell(row=1, column=column).number_format = "yyyy-mm-dd"

        self._setup_employee_section(choices)
        self._setup_note_section()

        mapper = self.mapper()
        weekend = PatternFill("solid", fgColor=config.WEEKEND_COLOR)
        for day in each_day(date_from, date_until):
            row = mapper.date_to_row(day)
            index_cell = ws.cell(row=row, column=config.INDEX_COLUMN, value=day)
            index_cell.number_format = 'ddd", "mmmm" "d'
            index_cell.alignment = Alignment(vertical="center")
            self.grid.merge_down(row, config.INDEX_COLUMN, config.ROWS_PER_ENTRY)
            for location in mapper.locations:
                self.grid.merge_across(row, mapper.location_to_column(location),
                                       config.COLUMNS_PER_ENTRY)
            if is_weekend(day):
                for r in range(row, row + config.ROWS_PER_ENTRY):
                    for c in range(config.INDEX_COLUMN, mapper.note_column() - 1):
                        ws.cell(row=r, column=c).fill = weekend

        for location in mapper.locations:
            column = mapper.location_to_column(location)
            ws.cell(row=1, column=column, value=location.name).font = Font(bold=True)

        placed = self.place_entries()
        logger.info("Schedule set up for %s - %s with %d entries", date_from, date_until, placed)
