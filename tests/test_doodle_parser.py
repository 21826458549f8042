import pytest
import sys
from pathlib import Path
from datetime import date, time

from openpyxl import Workbook

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.data_manager import DataManager
from shift_roster.doodle_parser import (
    DoodleParser, decode_columns, parse_month_and_year, resolve_shift, write_poll_table
)
from shift_roster.employees import EmployeeDirectory
from shift_roster.errors import DoodleParseError, UnknownEmployeeError, UnresolvableShiftError
from shift_roster.grid import MergedRun, WorksheetGridStore
from shift_roster.shifts import FIRST_HALF, SECOND_HALF, WHOLE_DAY, hhmm


@pytest.fixture
def directory(tmp_path):
    dm = DataManager(str(tmp_path / "roster.json"))
    dm.add_employee("Alice", "Alice Smith")
    dm.add_employee("Bob")
    return EmployeeDirectory(dm)


def make_survey(rows):
    """
    Survey sheet with two days in May 2019: day 1 offers a morning and an
    afternoon column, day 2 a whole day column.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Umfrage"
    ws.cell(row=1, column=1, value="Dienstplan Mai")
    ws.cell(row=4, column=2, value="Mai 2019")
    ws.merge_cells(start_row=4, start_column=2, end_row=4, end_column=4)
    ws.cell(row=5, column=2, value="Mi 1")
    ws.merge_cells(start_row=5, start_column=2, end_row=5, end_column=3)
    ws.cell(row=5, column=4, value="Do 2")
    ws.cell(row=6, column=2, value="10:00 – 14:00")
    ws.cell(row=6, column=3, value="13:00 – 19:00")
    ws.cell(row=6, column=4, value="10:00 – 19:00")
    for r, values in enumerate(rows, start=7):
        for c, value in enumerate(values, start=1):
            ws.cell(row=r, column=c, value=value)
    ws.cell(row=7 + len(rows), column=1, value="Anzahl")
    return wb


def test_decode_columns_uses_each_columns_own_headers():
    months = [MergedRun(2, 4, "Mai 2019")]
    days = [MergedRun(2, 3, "Tag 1"), MergedRun(4, 4, "Tag 2")]
    times = [MergedRun(2, 2, "9:45 – 14:00"), MergedRun(3, 3, "13:00 – 19:00"),
             MergedRun(4, 4, "9:45 – 19:00")]
    columns = decode_columns(months, days, times)

    col3 = columns[1]
    assert col3.column == 3
    assert (col3.year, col3.month_index, col3.day) == (2019, 4, 1)
    assert (col3.start, col3.stop) == (hhmm(13), hhmm(19))
    assert col3.date == date(2019, 5, 1)
    assert columns[2].day == 2


def test_decode_columns_names_failing_header():
    months = [MergedRun(2, 2, "Mai 2019")]
    days = [MergedRun(2, 2, "Tag 1")]
    times = [MergedRun(2, 2, "morgens")]
    with pytest.raises(DoodleParseError) as exc:
        decode_columns(months, days, times)
    assert exc.value.header == "time"
    assert "morgens" in str(exc.value)


def test_unknown_month_name():
    with pytest.raises(DoodleParseError) as exc:
        parse_month_and_year("May 2019", 2)
    assert exc.value.header == "month and year"
    assert parse_month_and_year("März 2020", 2) == (2020, 2)


def test_resolve_shift():
    assert resolve_shift(hhmm(10), hhmm(14)) is FIRST_HALF
    assert resolve_shift(hhmm(9, 45), hhmm(19)) is WHOLE_DAY
    assert resolve_shift(hhmm(13), hhmm(19)) is SECOND_HALF
    with pytest.raises(UnresolvableShiftError):
        resolve_shift(hhmm(8), hhmm(12))


def test_parse_survey(directory):
    wb = make_survey([
        ["Alice Smith", "OK", None, "OK"],
        ["Bob", None, "OK", None],
    ])
    responses = DoodleParser(WorksheetGridStore(wb["Umfrage"]), directory).parse()
    assert [(r.employee, r.date, r.shift) for r in responses] == [
        ("Alice", date(2019, 5, 1), FIRST_HALF),
        ("Bob", date(2019, 5, 1), SECOND_HALF),
        ("Alice", date(2019, 5, 2), WHOLE_DAY),
    ]


def test_parse_survey_unknown_employee(directory):
    wb = make_survey([["Mallory", "OK", None, None]])
    with pytest.raises(UnknownEmployeeError) as exc:
        DoodleParser(WorksheetGridStore(wb["Umfrage"]), directory).parse()
    assert "Mallory" in str(exc.value)


def test_write_poll_table(directory):
    wb = make_survey([
        ["Bob", "OK", None, None],
        ["Alice", None, "OK", None],
    ])
    responses = DoodleParser(WorksheetGridStore(wb["Umfrage"]), directory).parse()
    table = write_poll_table(wb, responses)
    ws = table.worksheet
    assert ws.title == "UmfrageAlsTabelle"
    assert [c.value for c in ws[1]] == ["Mitarbeiter", "Tag", "Anfang", "Ende", "Schicht"]
    assert ws.cell(row=2, column=1).value == "Alice"
    assert ws.cell(row=2, column=3).value == time(13, 0)
    assert ws.cell(row=3, column=5).value == "Vormittags"

    # writing again replaces the sheet
    write_poll_table(wb, responses[:1])
    assert wb["UmfrageAlsTabelle"].max_row == 2
