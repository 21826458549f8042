import pytest
import sys
from pathlib import Path
from datetime import date

from openpyxl import Workbook

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.entry import Slot
from shift_roster.grid import GridCoordinateMapper, GridLayout, MergedRun, WorksheetGridStore
from shift_roster.locations import all_locations, location_by_name
from shift_roster.shifts import FIRST_HALF, SECOND_HALF, WHOLE_DAY, all_shifts


@pytest.fixture
def mapper():
    return GridCoordinateMapper(GridLayout(date(2019, 5, 1), date(2019, 5, 10)))


@pytest.fixture
def grid():
    return WorksheetGridStore(Workbook().active)


def test_slot_to_cell(mapper):
    buero = location_by_name("Buero")
    assert mapper.slot_to_cell(Slot(date(2019, 5, 1), buero, WHOLE_DAY)) == (3, 10)
    assert mapper.slot_to_cell(Slot(date(2019, 5, 2), buero, FIRST_HALF)) == (6, 10)
    assert mapper.slot_to_cell(Slot(date(2019, 5, 2), buero, SECOND_HALF)) == (6, 11)


def test_round_trip_for_every_slot(mapper):
    count = 0
    for slot in mapper.each_slot():
        row, column = mapper.slot_to_cell(slot)
        assert mapper.cell_to_slot(row, column) == slot
        count += 1
    assert count == 10 * len(all_locations()) * len(all_shifts())


def test_whole_day_row_maps_both_merged_columns(mapper):
    slot = mapper.cell_to_slot(3, 8)
    assert slot.shift is WHOLE_DAY
    assert slot.location.name == "Ammergasse"


def test_gutter_columns_have_no_slot(mapper):
    for loc in all_locations():
        gutter = mapper.location_to_column(loc) + 2
        assert mapper.cell_to_slot(3, gutter) is None
        assert mapper.cell_to_slot(4, gutter) is None


def test_outside_entry_region_has_no_slot(mapper):
    assert mapper.cell_to_slot(2, 7) is None  # header row
    assert mapper.cell_to_slot(3, 6) is None  # left of first entry column
    assert mapper.cell_to_slot(3 + 10 * 2, 7) is None  # after the last date
    assert mapper.cell_to_slot(3, mapper.note_column()) is None  # past the last location


def test_inconsistent_cell_is_logged_not_raised(caplog):
    mapper = GridCoordinateMapper(GridLayout(date(2019, 5, 1), date(2019, 5, 3), rows_per_entry=3))
    assert mapper.cell_to_slot(5, 7) is None
    assert "Inconsistent cell" in caplog.text


def test_note_column(mapper):
    assert mapper.note_column() == 20


def test_each_slot_for_one_day_is_in_slot_order(mapper):
    slots = list(mapper.each_slot(date(2019, 5, 4)))
    keys = [(s.date, s.location.name, s.shift.name) for s in slots]
    assert keys == sorted(keys)
    assert len(slots) == len(all_locations()) * len(all_shifts())


def test_merged_ranges_of(grid):
    grid.write_cell(4, 2, "Mai 2019")
    grid.merge_across(4, 2, 3)
    grid.write_cell(4, 5, "Juni 2019")
    runs = grid.merged_ranges_of(4, 2, 6)
    assert runs == [
        MergedRun(2, 4, "Mai 2019"),
        MergedRun(5, 5, "Juni 2019"),
        MergedRun(6, 6, None),
    ]
    assert runs[0].contains(3)


def test_read_and_write_cells(grid):
    grid.write_cells(1, 1, [["Von", date(2019, 5, 1)], [None, 3]])
    assert grid.read_cell(1, 1) == "Von"
    assert grid.read_cell(2, 1) == ""
    assert grid.read_values(1, 1, 2, 2) == [["Von", date(2019, 5, 1)], [None, 3]]


def test_clear_removes_merges_and_values(grid):
    grid.write_cell(3, 5, "x")
    grid.merge_down(3, 5, 2)
    grid.clear()
    assert not grid.worksheet.merged_cells.ranges
    assert grid.read_value(3, 5) is None
