"""
Reporting and Export Module for the Shift Roster system

Exports the assignment log, the hours worked per employee and a head count
overview per date and location to Excel, CSV and PDF.
"""

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional
import logging

from openpyxl.styles import PatternFill, Font

from .dateutils import each_day, in_range_inclusive
from .locations import all_locations
from .log_store import LogStore
from .shifts import ShiftKind, format_hhmm, shift_by_name


class ReportGenerator:
    """Builds report tables from the log"""

    def __init__(self, log_store: LogStore):
        self.log_store = log_store
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom report styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=30,
            alignment=1  # Center alignment
        ))

    def create_log_dataframe(self, date_from: Optional[date] = None,
                             date_until: Optional[date] = None) -> pd.DataFrame:
        """One row per log line"""
        data = []
        for line in self.log_store.for_each():
            if date_from and date_until and not in_range_inclusive(line.date, date_from, date_until):
                continue
            data.append({
                'Tag': line.date,
                'Mitarbeiter': line.employee,
                'Ort': line.location,
                'Schicht': line.shift,
                'Anfang': format_hhmm(line.start),
                'Ende': format_hhmm(line.stop),
                'Pause': format_hhmm(line.break_minutes),
                'Arbeitszeit': line.worktime
            })
        return pd.DataFrame(data, columns=['Tag', 'Mitarbeiter', 'Ort', 'Schicht', 'Anfang',
                                           'Ende', 'Pause', 'Arbeitszeit'])

    def create_hours_dataframe(self, date_from: date, date_until: date) -> pd.DataFrame:
        """Hours worked per employee within the range"""
        minutes = self.log_store.worktime_by_employee(date_from, date_until)
        data = [{'Mitarbeiter': name, 'Stunden': round(total / 60, 2)}
                for name, total in sorted(minutes.items())]
        return pd.DataFrame(data, columns=['Mitarbeiter', 'Stunden'])

    def create_overview_dataframe(self, date_from: date, date_until: date) -> pd.DataFrame:
        """
        Employees present per date, location and half day.  Whole-day shifts
        count towards both halves.
        """
        halves = [ShiftKind.MORNING, ShiftKind.AFTERNOON]
        counts: Dict[tuple, int] = {}
        for line in self.log_store.for_each():
            if not in_range_inclusive(line.date, date_from, date_until):
                continue
            kind = shift_by_name(line.shift).kind
            for half in halves:
                if kind in (ShiftKind.WHOLE_DAY, half):
                    key = (line.date, line.location, half)
                    counts[key] = counts.get(key, 0) + 1

        columns = [f"{loc.name} {half.german_name}" for loc in all_locations()
                   for half in halves]
        data = []
        for day in each_day(date_from, date_until):
            row = {'Tag': day}
            for loc in all_locations():
                for half in halves:
                    row[f"{loc.name} {half.german_name}"] = counts.get((day, loc.name, half), 0)
            data.append(row)
        return pd.DataFrame(data, columns=['Tag'] + columns)

    def export_log_excel(self, output_path: str, date_from: Optional[date] = None,
                         date_until: Optional[date] = None) -> bool:
        """Export log, hours and overview to an Excel workbook"""
        try:
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                log_df = self.create_log_dataframe(date_from, date_until)
                log_df.to_excel(writer, sheet_name='Daten', index=False)

                if date_from and date_until:
                    self.create_hours_dataframe(date_from, date_until).to_excel(
                        writer, sheet_name='Stunden', index=False)
                    self.create_overview_dataframe(date_from, date_until).to_excel(
                        writer, sheet_name='Uebersicht', index=False)

                self._format_excel_worksheets(writer)

            return True

        except Exception as e:
            logging.error(f"Error exporting to Excel: {e}", exc_info=True)
            return False

    def _format_excel_worksheets(self, writer):
        """Header formatting and column widths"""
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for ws in writer.sheets.values():
            for cell in ws[1]:
                cell.fill = header_fill
                cell.font = header_font

            for column in ws.columns:
                max_length = max((len(str(cell.value)) for cell in column
                                  if cell.value is not None), default=0)
                ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

    def export_log_csv(self, output_path: str, date_from: Optional[date] = None,
                       date_until: Optional[date] = None) -> bool:
        """Export the log to CSV format"""
        try:
            self.create_log_dataframe(date_from, date_until).to_csv(output_path, index=False)
            return True

        except Exception as e:
            logging.error(f"Error exporting to CSV: {e}", exc_info=True)
            return False

    def export_overview_pdf(self, date_from: date, date_until: date, output_path: str) -> bool:
        """Export the head count overview to PDF"""
        try:
            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.5*inch,
                leftMargin=0.5*inch,
                topMargin=0.5*inch,
                bottomMargin=0.5*inch
            )

            title_text = f"Uebersicht {date_from.isoformat()} - {date_until.isoformat()}"
            story = [Paragraph(title_text, self.styles['CustomTitle']), Spacer(1, 20)]

            overview = self.create_overview_dataframe(date_from, date_until)
            header = ['Tag'] + [c.replace(' ', '\n', 1) for c in overview.columns[1:]]
            data = [header]
            for _, row in overview.iterrows():
                data.append([row['Tag'].strftime('%a %d.%m.')] +
                            [str(v) for v in row.iloc[1:]])

            table = Table(data, repeatRows=1)
            style = [
                ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
                ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, -1), 7),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ]
            # nobody present in a half day
            for r, (_, row) in enumerate(overview.iterrows(), start=1):
                for c, value in enumerate(row.iloc[1:], start=1):
                    if value == 0:
                        style.append(('TEXTCOLOR', (c, r), (c, r), colors.red))
            table.setStyle(TableStyle(style))
            story.append(table)

            doc.build(story)
            return True

        except Exception as e:
            logging.error(f"Error creating PDF: {e}", exc_info=True)
            return False


class ExportManager:
    """Manager class for handling all export operations"""

    def __init__(self, log_store: LogStore):
        self.log_store = log_store
        self.report_generator = ReportGenerator(log_store)

    def export(self, format_type: str, output_path: str, date_from: date,
               date_until: date) -> bool:
        """Export in the specified format"""
        if format_type.lower() == 'pdf':
            return self.report_generator.export_overview_pdf(date_from, date_until, output_path)
        elif format_type.lower() == 'excel':
            return self.report_generator.export_log_excel(output_path, date_from, date_until)
        elif format_type.lower() == 'csv':
            return self.report_generator.export_log_csv(output_path, date_from, date_until)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, date_from: date, format_type: str) -> str:
        """Generate default filename for export"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        extension = 'xlsx' if format_type.lower() == 'excel' else format_type.lower()
        return f"roster_{date_from.isoformat()}_{timestamp}.{extension}"

    def batch_export(self, date_from: date, date_until: date, output_dir: str,
                     formats: List[str] = None) -> Dict[str, bool]:
        """Export in multiple formats"""
        if formats is None:
            formats = ['pdf', 'excel', 'csv']

        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            file_path = output_path / self.get_default_filename(date_from, format_type)
            results[format_type] = self.export(format_type, str(file_path), date_from, date_until)

        return results
