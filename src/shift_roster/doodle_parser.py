"""
Doodle Parser for the Shift Roster system

A doodle export has three header rows describing each answer column through
merged cells: month and year, day, and time range.  Below them is one row per
employee with "OK" in every column the employee is available for, followed by
a summary row.  Each header row is decoded into runs of merged columns, then
the data columns are walked left to right with one cursor per header row.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional, Sequence, Tuple
import logging
import re

from openpyxl.styles import Font
from openpyxl.workbook.workbook import Workbook

from . import config
from .employees import EmployeeDirectory
from .errors import DoodleParseError, UnresolvableShiftError
from .grid import MergedRun, WorksheetGridStore
from .shifts import FIRST_HALF, SECOND_HALF, WHOLE_DAY, Shift
from .survey import SurveyResponse

logger = logging.getLogger(__name__)

GERMAN_MONTH_NAMES = {
    name: ndx for ndx, name in enumerate([
        "Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
        "August", "September", "Oktober", "November", "Dezember",
    ])
}

MONTH_AND_YEAR_RE = re.compile(r"^([^ ]+) ([0-9]+)$")
DAY_RE = re.compile(r"^([^ ]+) ([0-9]+)$")
TIME_RE = re.compile(r"^([0-9]+):([0-9]+)\s*–\s*([0-9]+):([0-9]+)$")


@dataclass(frozen=True)
class SurveyColumn:
    """Decoded header of one answer column; month_index is 0 based"""
    column: int
    year: int
    month_index: int
    day: int
    start: int
    stop: int

    @property
    def date(self) -> date:
        return date(self.year, self.month_index + 1, self.day)


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def parse_month_and_year(value, column: int) -> Tuple[int, int]:
    m = MONTH_AND_YEAR_RE.match(_text(value))
    if m is None or m.group(1) not in GERMAN_MONTH_NAMES:
        raise DoodleParseError("month and year", value, column)
    return int(m.group(2)), GERMAN_MONTH_NAMES[m.group(1)]


def parse_day(value, column: int) -> int:
    m = DAY_RE.match(_text(value))
    if m is None:
        raise DoodleParseError("day", value, column)
    return int(m.group(2))


def parse_time_range(value, column: int) -> Tuple[int, int]:
    m = TIME_RE.match(_text(value))
    if m is None:
        raise DoodleParseError("time", value, column)
    return (int(m.group(1)) * 60 + int(m.group(2)),
            int(m.group(3)) * 60 + int(m.group(4)))


def _advance(runs: Sequence[MergedRun], cursor: int, column: int, header: str) -> int:
    while cursor < len(runs) and column > runs[cursor].last_column:
        cursor += 1
    if cursor >= len(runs) or not runs[cursor].contains(column):
        raise DoodleParseError(header, None, column)
    return cursor


def decode_columns(months: Sequence[MergedRun], days: Sequence[MergedRun],
                   times: Sequence[MergedRun]) -> List[SurveyColumn]:
    """Combine the three header rows into one decoded header per column"""
    if not months:
        return []
    month = day = tm = 0
    result = []
    for column in range(months[0].first_column, months[-1].last_column + 1):
        month = _advance(months, month, column, "month and year")
        day = _advance(days, day, column, "day")
        tm = _advance(times, tm, column, "time")
        year, month_index = parse_month_and_year(months[month].value, column)
        day_value = parse_day(days[day].value, column)
        start, stop = parse_time_range(times[tm].value, column)
        result.append(SurveyColumn(column, year, month_index, day_value, start, stop))
    return result


def resolve_shift(start: int, stop: int) -> Shift:
    """Catalog shift for a survey time range, matched on the hours"""
    start_hour = start // 60
    stop_hour = stop // 60
    if start_hour in (9, 10) and stop_hour == 14:
        return FIRST_HALF
    if start_hour in (9, 10) and stop_hour > 14:
        return WHOLE_DAY
    if start_hour == 13:
        return SECOND_HALF
    raise UnresolvableShiftError(start, stop)


class DoodleParser:
    """Turns an imported doodle worksheet into survey responses"""

    def __init__(self, grid: WorksheetGridStore, directory: EmployeeDirectory):
        self.grid = grid
        self.directory = directory

    def columns(self) -> List[SurveyColumn]:
        last = self.grid.last_column()
        first = config.SURVEY_FIRST_COLUMN
        months = self.grid.merged_ranges_of(config.SURVEY_MONTH_ROW, first, last)
        days = self.grid.merged_ranges_of(config.SURVEY_DAY_ROW, first, last)
        times = self.grid.merged_ranges_of(config.SURVEY_TIME_ROW, first, last)
        # trailing empty columns are not part of the poll
        while months and months[-1].value is None:
            months.pop()
        return decode_columns(months, days, times)

    def response_rows(self) -> List[Tuple[int, str]]:
        """(row, employee handle) of every response row"""
        last = self.grid.last_row() - config.SURVEY_SUMMARY_ROWS
        rows = []
        for row in range(config.SURVEY_FIRST_RESPONSE_ROW, last + 1):
            name = _text(self.grid.read_value(row, 1))
            if name:
                rows.append((row, self.directory.resolve(name)))
        return rows

    def parse(self) -> List[SurveyResponse]:
        columns = self.columns()
        rows = self.response_rows()
        result = []
        for col in columns:
            for row, employee in rows:
                if _text(self.grid.read_value(row, col.column)) != config.SURVEY_OK_MARKER:
                    continue
                result.append(SurveyResponse(employee, col.date, col.start, col.stop,
                                             resolve_shift(col.start, col.stop)))
        logger.info("Parsed %d survey responses from %d columns and %d employees",
                    len(result), len(columns), len(rows))
        return result


def write_poll_table(workbook: Workbook, responses: Sequence[SurveyResponse],
                     title: Optional[str] = None) -> WorksheetGridStore:
    """Write the responses as a flat table, sorted by date then employee"""
    title = title or config.POLL_TABLE_SHEET
    if title in workbook.sheetnames:
        workbook.remove(workbook[title])
    ws = workbook.create_sheet(title)
    ws.append(["Mitarbeiter", "Tag", "Anfang", "Ende", "Schicht"])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for r in sorted(responses, key=lambda r: (r.date, r.employee)):
        ws.append([r.employee, r.date, time(r.start // 60, r.start % 60),
                   time(r.stop // 60, r.stop % 60), r.shift.name])
    for row in ws.iter_rows(min_row=2, min_col=2, max_col=4):
        row[0].number_format = "yyyy-mm-dd"
        row[1].number_format = "hh:mm"
        row[2].number_format = "hh:mm"
    return WorksheetGridStore(ws)
