"""
Main Entry Point for the Shift Roster system

Opens the roster workbook and the data file, wires the schedule sheet, the
reconciler and the edit dispatcher together, and exposes the menu actions
both as methods of RosterApp and as command line subcommands.
"""

import argparse
import sys
import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from openpyxl import Workbook, load_workbook

from . import config
from .data_manager import DataManager
from .dateutils import parse_iso_date, parse_month_range
from .doodle_parser import DoodleParser, write_poll_table
from .edit_dispatcher import CellEdit, EditDispatcher, EditKind
from .employees import EmployeeDirectory
from .errors import RosterError, ValueConversionError
from .grid import WorksheetGridStore
from .log_store import LogStore
from .notes import NoteStore
from .reconciler import Diff, Reconciler
from .reporting import ExportManager
from .schedule_sheet import ScheduleSheet
from .survey import SurveyResponse


def setup_logging(level=logging.INFO):
    """Setup application logging"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_file = log_dir / f"shift_roster_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )

    return logging.getLogger(__name__)


def handle_exception(exc_type, exc_value, exc_traceback):
    """Global exception handler"""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger = logging.getLogger(__name__)
    logger.error(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback)
    )


class RosterApp:
    """Main application class"""

    def __init__(self, workbook_path: str, data_file: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self.workbook_path = Path(workbook_path)
        self.workbook = self._open_workbook()
        self.data_manager = DataManager(data_file)
        self.log_store = LogStore(self.data_manager)
        self.note_store = NoteStore(self.data_manager)
        self.directory = EmployeeDirectory(self.data_manager)
        self.sheet = ScheduleSheet(WorksheetGridStore(self.workbook[config.SCHEDULE_SHEET]),
                                   self.log_store, self.note_store, self.directory)
        self.reconciler = Reconciler(self.sheet, self.log_store)
        self.dispatcher = EditDispatcher(self.sheet, self.reconciler,
                                         self.log_store, self.note_store)
        self.export_manager = ExportManager(self.log_store)

    def _open_workbook(self) -> Workbook:
        if self.workbook_path.exists():
            self.logger.info(f"Opening workbook {self.workbook_path}")
            workbook = load_workbook(self.workbook_path)
        else:
            self.logger.info(f"Creating new workbook {self.workbook_path}")
            workbook = Workbook()
            workbook.active.title = config.SCHEDULE_SHEET
        if config.SCHEDULE_SHEET not in workbook.sheetnames:
            workbook.create_sheet(config.SCHEDULE_SHEET, 0)
        return workbook

    def has_schedule(self) -> bool:
        """True once the von/bis cells hold dates"""
        try:
            self.sheet.date_range()
            return True
        except ValueConversionError:
            return False

    # Menu actions

    def on_open(self) -> List[Diff]:
        """Bring the log up to date with edits made while nobody was watching"""
        if not self.has_schedule():
            self.logger.info("Schedule has no date range yet, nothing to synchronise")
            return []
        diffs = self.reconciler.sync(commit=False)
        self.sheet.save_notes()
        self.log_store.commit()
        return diffs

    def change_dates(self, date_from: date, date_until: date) -> None:
        """Lay the schedule out for a new range, keeping pending grid edits"""
        if date_until < date_from:
            raise ValueError(f"Range ends before it starts: {date_from} - {date_until}")
        self.on_open()
        self.directory.refresh()
        self.sheet.setup(date_from, date_until)

    def parse_doodle(self) -> List[SurveyResponse]:
        """Parse the survey sheet and write its responses as a flat table"""
        if config.SURVEY_SHEET not in self.workbook.sheetnames:
            raise RosterError(f"Workbook has no sheet named {config.SURVEY_SHEET!r}")
        parser = DoodleParser(WorksheetGridStore(self.workbook[config.SURVEY_SHEET]),
                              self.directory)
        responses = parser.parse()
        write_poll_table(self.workbook, responses)
        return responses

    def employees_from_doodle_to_schedule(self) -> int:
        responses = self.parse_doodle()
        return len(self.reconciler.place_survey(responses))

    def handle_edit(self, edit: CellEdit) -> Optional[EditKind]:
        return self.dispatcher.handle(edit)

    def export(self, format_type: str, output_path: Optional[str] = None) -> bool:
        date_from, date_until = self.sheet.date_range()
        if output_path is None:
            output_path = self.export_manager.get_default_filename(date_from, format_type)
        self.logger.info(f"Exporting {format_type} to {output_path}")
        return self.export_manager.export(format_type, output_path, date_from, date_until)

    def add_employee(self, name: str, alias: str = "") -> None:
        if self.data_manager.get_employee_by_name(name) is not None:
            raise ValueError(f"Employee {name!r} already exists")
        self.data_manager.add_employee(name, alias)
        self.data_manager.save_data()
        self.directory.refresh()

    def save(self) -> None:
        self.workbook.save(self.workbook_path)
        self.data_manager.save_data()
        self.logger.info(f"Saved workbook {self.workbook_path} and data file {self.data_manager.data_file}")


def parse_range(values: Sequence[str]) -> Tuple[date, date]:
    """Either FROM UNTIL as ISO dates or a single YYYY-MM month"""
    if len(values) == 1:
        rng = parse_month_range(values[0])
        if rng is None:
            raise argparse.ArgumentTypeError(f"Not a month (YYYY-MM): {values[0]}")
        return rng
    if len(values) == 2:
        date_from, date_until = parse_iso_date(values[0]), parse_iso_date(values[1])
        if date_from is None or date_until is None:
            raise argparse.ArgumentTypeError(f"Not a date range (YYYY-MM-DD): {' '.join(values)}")
        return date_from, date_until
    raise argparse.ArgumentTypeError("Expected FROM UNTIL or YYYY-MM")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shift-roster",
        description="Keep a shift roster workbook and its assignment log in sync")
    parser.add_argument("workbook", help="Path to the roster .xlsx workbook")
    parser.add_argument("--data-file", default=None,
                        help=f"JSON data file (default: {config.DEFAULT_DATA_FILE})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("sync", help="Copy grid edits into the log")
    setup = sub.add_parser("setup", help="Lay out the schedule for a date range")
    setup.add_argument("range", nargs="+", metavar="DATE",
                       help="FROM UNTIL (YYYY-MM-DD) or a single month YYYY-MM")
    sub.add_parser("doodle", help=f"Parse the {config.SURVEY_SHEET} sheet into a table")
    sub.add_parser("place-doodle", help="Place survey responses on the schedule")
    export = sub.add_parser("export", help="Export the log and overview")
    export.add_argument("format", choices=["excel", "csv", "pdf"])
    export.add_argument("-o", "--output", default=None, help="Output file")
    employee = sub.add_parser("add-employee", help="Add an employee to the directory")
    employee.add_argument("name")
    employee.add_argument("--alias", default="", help="Name used in surveys")
    return parser


def run(args: argparse.Namespace) -> int:
    app = RosterApp(args.workbook, args.data_file)
    logger = app.logger

    if args.command == "sync":
        diffs = app.on_open()
        for d in diffs:
            logger.info(f"{d.kind}: {d.slot} {list(d.employees_in_log)} -> {list(d.employees_in_grid)}")
    elif args.command == "setup":
        date_from, date_until = parse_range(args.range)
        app.change_dates(date_from, date_until)
    elif args.command == "doodle":
        responses = app.parse_doodle()
        logger.info(f"{len(responses)} survey responses written to {config.POLL_TABLE_SHEET}")
    elif args.command == "place-doodle":
        placed = app.employees_from_doodle_to_schedule()
        logger.info(f"{placed} survey entries placed")
    elif args.command == "export":
        if not app.export(args.format, args.output):
            return 1
    elif args.command == "add-employee":
        app.add_employee(args.name, args.alias)

    app.save()
    return 0


def main(argv: Optional[Sequence[str]] = None):
    """Main entry point"""
    # Setup global exception handling
    sys.excepthook = handle_exception

    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger.info("Starting Shift Roster: %s", args.command)

    try:
        code = run(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except RosterError as e:
        logger.error(f"{type(e).__name__}: {e}")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
