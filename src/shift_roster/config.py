"""
Configuration constants for the Shift Roster system

Layout geometry of the schedule grid and the survey import, sheet names and
data file defaults.  These are process-wide and never mutated.
"""

from pathlib import Path

APP_VERSION = "1.0.0"

# Workbook sheet names
SCHEDULE_SHEET = "Schedule"
SURVEY_SHEET = "Umfrage"
POLL_TABLE_SHEET = "UmfrageAlsTabelle"

# Default location of the JSON data file (log, notes, employees)
DEFAULT_DATA_FILE = Path("data") / "roster_data.json"

# Schedule grid geometry (1-based rows/columns)
INDEX_COLUMN = 5
FIRST_ENTRY_ROW = 3
FIRST_ENTRY_COLUMN = 7
ROWS_PER_ENTRY = 2
COLUMNS_PER_ENTRY = 2
COLUMNS_PER_LOCATION = COLUMNS_PER_ENTRY + 1

# Employee roster section on the left of the schedule
EMPLOYEE_NAME_COLUMN = 1
EMPLOYEE_HOURS_COLUMN = 2
EMPLOYEE_LOCATION_COLUMN = 3

WEEKEND_COLOR = "FFF2CC"
NOTE_COLOR = "FFFF99"

# Survey (doodle) geometry
SURVEY_MONTH_ROW = 4
SURVEY_DAY_ROW = 5
SURVEY_TIME_ROW = 6
SURVEY_FIRST_COLUMN = 2
SURVEY_FIRST_RESPONSE_ROW = 7
SURVEY_SUMMARY_ROWS = 1
SURVEY_OK_MARKER = "OK"
