import pytest
import sys
from pathlib import Path
import tempfile
import os
import json
from datetime import date

import pandas as pd
from openpyxl import load_workbook

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_roster.data_manager import DataManager
from shift_roster.entry import Assignment, Entry, Slot
from shift_roster.locations import location_by_name
from shift_roster.log_store import LogStore
from shift_roster.reporting import ExportManager
from shift_roster.shifts import FIRST_HALF, SECOND_HALF, WHOLE_DAY

BUERO = location_by_name("Buero")
MARKT = location_by_name("Marktgasse")
FROM = date(2019, 5, 1)
UNTIL = date(2019, 5, 3)


@pytest.fixture
def log_store():
    """Fixture for a LogStore backed by an actual temp file (safe for tests)."""
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".json", delete=False
    ) as tempfile_obj:
        temp_path = tempfile_obj.name
        # Begin with a minimal valid object
        tempfile_obj.write("{}")
    store = LogStore(DataManager(temp_path))
    store.add([
        Entry.of(Slot(FROM, BUERO, WHOLE_DAY), ["Alice"]),
        Entry.of(Slot(FROM, BUERO, FIRST_HALF), ["Bob", "Carol"]),
        Entry(Slot(date(2019, 5, 2), MARKT, SECOND_HALF), (Assignment("Bob", 780, 1140),)),
        Entry.of(Slot(date(2019, 6, 1), MARKT, WHOLE_DAY), ["Alice"]),
    ])
    yield store
    os.unlink(temp_path)


@pytest.fixture
def export_manager(log_store):
    """Fixture for an ExportManager instance."""
    return ExportManager(log_store)


def test_overview_counts_whole_day_in_both_halves(export_manager):
    overview = export_manager.report_generator.create_overview_dataframe(FROM, UNTIL)
    assert list(overview["Tag"]) == [FROM, date(2019, 5, 2), UNTIL]
    first = overview.iloc[0]
    assert first["Buero Vormittags"] == 3
    assert first["Buero Nachmittags"] == 1
    assert first["Ammergasse Vormittags"] == 0
    assert overview.iloc[1]["Marktgasse Nachmittags"] == 1
    assert overview.iloc[2].iloc[1:].sum() == 0


def test_hours_dataframe(export_manager):
    hours = export_manager.report_generator.create_hours_dataframe(FROM, UNTIL)
    by_name = dict(zip(hours["Mitarbeiter"], hours["Stunden"]))
    assert by_name == {"Alice": 8.25, "Bob": 10.25, "Carol": 4.25}


def test_log_dataframe_respects_range(export_manager):
    df = export_manager.report_generator.create_log_dataframe(FROM, UNTIL)
    assert len(df) == 4
    assert len(export_manager.report_generator.create_log_dataframe()) == 5
    bob = df[(df["Mitarbeiter"] == "Bob") & (df["Schicht"] == "Nachmittags")].iloc[0]
    assert (bob["Anfang"], bob["Ende"], bob["Arbeitszeit"]) == ("13:00", "19:00", 360)


def test_pdf_export_basic(export_manager):
    """Test PDF export works on valid seeded data."""
    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as tmpfile:
        output_path = tmpfile.name
    success = export_manager.export("pdf", output_path, FROM, UNTIL)
    assert success
    assert os.path.exists(output_path)
    assert os.path.getsize(output_path) > 200  # Allowing header + minimal table
    os.unlink(output_path)


def test_pdf_export_bad_path(export_manager):
    """Test PDF export failure if path is unwritable (should not throw, just return False)."""
    result = export_manager.export("pdf", "/not_a_dir/this_file_should_fail.pdf", FROM, UNTIL)
    assert result is False


def test_excel_export_has_formatted_sheets(export_manager):
    with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as tmpfile:
        output_path = tmpfile.name

    assert export_manager.export("excel", output_path, FROM, UNTIL)

    wb = load_workbook(output_path)
    assert wb.sheetnames == ["Daten", "Stunden", "Uebersicht"]
    assert wb["Daten"]["A1"].value == "Tag"
    assert wb["Daten"]["A1"].font.bold
    assert wb["Daten"].max_row == 5
    os.unlink(output_path)


def test_csv_export_basic(export_manager):
    with tempfile.NamedTemporaryFile(suffix=".csv", delete=False) as tmpfile:
        output_path = tmpfile.name

    assert export_manager.export("csv", output_path, FROM, UNTIL)

    df = pd.read_csv(output_path)
    assert list(df.columns)[:4] == ["Tag", "Mitarbeiter", "Ort", "Schicht"]
    assert len(df) == 4
    os.unlink(output_path)


def test_unsupported_format(export_manager):
    with pytest.raises(ValueError):
        export_manager.export("docx", "out.docx", FROM, UNTIL)


def test_batch_export(export_manager, tmp_path):
    results = export_manager.batch_export(FROM, UNTIL, str(tmp_path / "out"))
    assert results == {"pdf": True, "excel": True, "csv": True}
    assert len(list((tmp_path / "out").iterdir())) == 3
