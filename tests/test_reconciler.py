import pytest
import sys
from pathlib import Path
from datetime import date

from openpyxl import Workbook

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.data_manager import DataManager
from shift_roster.employees import EmployeeDirectory
from shift_roster.entry import Assignment, Entry, Slot
from shift_roster.errors import SlotTextParseError
from shift_roster.grid import WorksheetGridStore
from shift_roster.locations import location_by_name
from shift_roster.log_store import LogStore
from shift_roster.notes import NoteStore
from shift_roster.reconciler import Reconciler, diff
from shift_roster.schedule_sheet import ScheduleSheet
from shift_roster.shifts import FIRST_HALF, SECOND_HALF, WHOLE_DAY, hhmm
from shift_roster.survey import SurveyResponse, unique_responses

BUERO = location_by_name("Buero")
MARKT = location_by_name("Marktgasse")


@pytest.fixture
def sheet(tmp_path):
    """Schedule for 2019-05-01..03 on an in-memory workbook"""
    dm = DataManager(str(tmp_path / "roster.json"))
    for name in ("Alice", "Bob", "Carol"):
        dm.add_employee(name)
    sheet = ScheduleSheet(WorksheetGridStore(Workbook().active), LogStore(dm),
                          NoteStore(dm), EmployeeDirectory(dm))
    sheet.setup(date(2019, 5, 1), date(2019, 5, 3))
    return sheet


@pytest.fixture
def reconciler(sheet):
    return Reconciler(sheet, sheet.log_store)


def test_diff_reports_changed_slot_only():
    day1 = Slot(date(2019, 5, 1), BUERO, FIRST_HALF)
    day2 = Slot(date(2019, 5, 2), BUERO, FIRST_HALF)
    log_entries = [Entry.of(day1, ["A"]), Entry.of(day2, ["B"])]
    grid_entries = [Entry.of(day1, ["A", "C"]), Entry.of(day2, ["B"])]

    [d] = diff(grid_entries, log_entries)
    assert d.slot == day1
    assert d.employees_in_grid == ("A", "C")
    assert d.employees_in_log == ("A",)
    assert d.kind == "changed"


def test_diff_added_and_removed():
    a = Slot(date(2019, 5, 1), BUERO, WHOLE_DAY)
    b = Slot(date(2019, 5, 1), MARKT, WHOLE_DAY)
    c = Slot(date(2019, 5, 2), BUERO, WHOLE_DAY)
    diffs = diff([Entry.of(b, ["X"])], [Entry.of(a, ["Y"]), Entry.of(c, ["Z"])])
    assert [(d.slot, d.kind) for d in diffs] == [(a, "removed"), (b, "added"), (c, "removed")]


def test_diff_of_empty_sides():
    a = Entry.of(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY), ["X"])
    assert diff([], []) == []
    assert [d.kind for d in diff([a], [])] == ["added"]
    assert [d.kind for d in diff([], [a])] == ["removed"]
    assert diff([a], [a]) == []


def test_diff_sees_time_overrides():
    slot = Slot(date(2019, 5, 1), BUERO, SECOND_HALF)
    grid = [Entry(slot, (Assignment("Bob", hhmm(13), hhmm(19)),))]
    log = [Entry.of(slot, ["Bob"])]
    assert len(diff(grid, log)) == 1


def test_scan_grid_is_in_slot_order(sheet, reconciler):
    mapper = sheet.mapper()
    sheet.write_slot(Slot(date(2019, 5, 2), MARKT, FIRST_HALF), "Carol")
    sheet.write_slot(Slot(date(2019, 5, 1), MARKT, WHOLE_DAY), "Bob, Alice")
    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, SECOND_HALF), "Alice 14-18 - covering")
    entries = reconciler.scan_grid()
    assert [(e.date, e.location.name, e.shift.name, e.employees) for e in entries] == [
        (date(2019, 5, 1), "Buero", "Nachmittags", ("Alice",)),
        (date(2019, 5, 1), "Marktgasse", "Ganztags", ("Alice", "Bob")),
        (date(2019, 5, 2), "Marktgasse", "Vormittags", ("Carol",)),
    ]
    assert entries[0].assignments[0].duration == 240
    assert mapper.cell_to_slot(*mapper.slot_to_cell(entries[1].slot)) == entries[1].slot


def test_sync_copies_grid_to_log_and_is_idempotent(sheet, reconciler):
    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY), "Alice, Bob")
    sheet.write_slot(Slot(date(2019, 5, 3), BUERO, FIRST_HALF), "Carol")

    first = reconciler.sync()
    assert [d.kind for d in first] == ["added", "added"]
    assert reconciler.sync() == []
    assert reconciler.compare() == []

    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY), "Alice")
    sheet.write_slot(Slot(date(2019, 5, 3), BUERO, FIRST_HALF), "")
    second = reconciler.sync()
    assert [(d.kind, d.employees_in_grid) for d in second] == [("changed", ("Alice",)), ("removed", ())]
    assert [l.employee for l in sheet.log_store.for_each()] == ["Alice"]


def test_sync_with_shift_times_spelled_out_is_idempotent(sheet, reconciler):
    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, FIRST_HALF), "Bob 9:45-14:00")
    sheet.write_slot(Slot(date(2019, 5, 1), MARKT, SECOND_HALF), "Bob 13:00-19:00")
    sheet.write_slot(Slot(date(2019, 5, 2), BUERO, WHOLE_DAY), "Alice 9:45-19:00")

    assert [d.kind for d in reconciler.sync()] == ["added", "added", "added"]
    assert reconciler.sync() == []
    assert reconciler.compare() == []

    lines = {(l.date, l.location, l.shift): l for l in sheet.log_store.for_each()}
    whole_day = lines[(date(2019, 5, 2), "Buero", "Ganztags")]
    assert (whole_day.break_minutes, whole_day.worktime) == (60, 495)
    override = lines[(date(2019, 5, 1), "Marktgasse", "Nachmittags")]
    assert (override.start, override.worktime) == (hhmm(13), 360)


def test_sync_leaves_log_outside_the_range_alone(sheet, reconciler):
    outside = Entry.of(Slot(date(2019, 4, 30), BUERO, WHOLE_DAY), ["Bob"])
    sheet.log_store.add([outside])
    assert reconciler.sync() == []
    assert [l.date for l in sheet.log_store.for_each()] == [date(2019, 4, 30)]


def test_sync_fails_on_malformed_cell(sheet, reconciler):
    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY), "Alice soon")
    with pytest.raises(SlotTextParseError):
        reconciler.sync()


def test_setup_places_log_entries(sheet):
    slot = Slot(date(2019, 5, 2), BUERO, SECOND_HALF)
    sheet.log_store.add([Entry(slot, (Assignment("Bob", hhmm(13), hhmm(19)), Assignment("Alice")))])
    sheet.setup(date(2019, 5, 1), date(2019, 5, 3))
    assert sheet.read_slot(slot) == "Alice, Bob 13:00-19:00"
    assert sheet.grid.read_value(3, 1) == "Alice"


def test_setup_keeps_location_choices(sheet):
    sheet.grid.write_cell(4, 3, "Buero")
    sheet.setup(date(2019, 5, 1), date(2019, 5, 3))
    assert sheet.employees_and_locations() == {"Bob": BUERO}


def test_unique_responses_keep_longest():
    day = date(2019, 5, 1)
    short = SurveyResponse("Alice", day, hhmm(10), hhmm(14), FIRST_HALF)
    long = SurveyResponse("Alice", day, hhmm(13), hhmm(19), SECOND_HALF)
    other = SurveyResponse("Bob", day, hhmm(10), hhmm(14), FIRST_HALF)
    assert unique_responses([other, short, long]) == [long, other]


def test_place_survey_adds_entries_for_employees_with_location(sheet, reconciler):
    sheet.grid.write_cell(3, 3, "Buero")  # Alice
    sheet.grid.write_cell(4, 3, "Marktgasse")  # Bob
    sheet.write_slot(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY), "Alice")
    responses = [
        SurveyResponse("Alice", date(2019, 5, 1), hhmm(10), hhmm(19), WHOLE_DAY),
        SurveyResponse("Bob", date(2019, 5, 2), hhmm(10), hhmm(14), FIRST_HALF),
        SurveyResponse("Bob", date(2019, 5, 2), hhmm(10), hhmm(19), WHOLE_DAY),
        SurveyResponse("Carol", date(2019, 5, 2), hhmm(13), hhmm(19), SECOND_HALF),
        SurveyResponse("Bob", date(2019, 6, 2), hhmm(13), hhmm(19), SECOND_HALF),
    ]

    placed = reconciler.place_survey(responses)

    assert [(e.slot, e.employees) for e in placed] == [
        (Slot(date(2019, 5, 2), MARKT, WHOLE_DAY), ("Bob",)),
    ]
    assert sheet.read_slot(Slot(date(2019, 5, 2), MARKT, WHOLE_DAY)) == "Bob"
    assert sheet.read_slot(Slot(date(2019, 5, 1), BUERO, WHOLE_DAY)) == "Alice"
    assert len(list(sheet.log_store.for_each())) == 2
