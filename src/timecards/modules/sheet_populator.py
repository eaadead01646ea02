from __future__ import annotations

from datetime import timedelta
from typing import Any, List

from loguru import logger
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, Field

from pydantic_models.config.templates_config import DAYS_PER_WEEK, TemplateLayout
from pydantic_models.data.timecard_request import TimecardRequest
from pydantic_models.data.week_bucket import WeekBucket
from timecards.modules.column_allocator import ColumnAssignment
from timecards.modules.date_serial import to_serial
from timecards.modules.hours_aggregator import aggregate_hours
from timecards.modules.protected_cells import ProtectedCellRegistry


class SheetReport(BaseModel):
    """
    Protokoll eines befüllten Wochenblatts. 'warnings' sind Datenqualitäts-Hinweise,
    sie brechen die Anfrage nie ab.
    """
    sheet_title: str
    week_number: int
    cells_written: int = 0
    hours_written: float = 0.0
    night_hours: float = 0.0
    skipped_protected: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class SheetPopulator:
    """
    Befüllt ein Wochenblatt der Vorlage: Kopfdaten, Tagesdaten beider Blöcke,
    Job-Köpfe und die aggregierten Stunden.
    """

    def __init__(self, layout: TemplateLayout, assignment: ColumnAssignment, registry: ProtectedCellRegistry):
        self.layout = layout
        self.assignment = assignment
        self.registry = registry

    def _write(self, ws: Worksheet, coordinate: str, value: Any, report: SheetReport, check_protected: bool = True) -> bool:
        if check_protected and self.registry.is_protected(coordinate):
            logger.info(f"Blatt '{ws.title}': {coordinate} enthält eine Formel und wird nicht überschrieben.")
            report.skipped_protected.append(coordinate)
            return False
        cell = ws[coordinate]
        cell.value = value
        if isinstance(value, str):
            # Texte immer als Literal ablegen, auch wenn sie mit '=' beginnen
            cell.data_type = "s"
        report.cells_written += 1
        return True

    def _write_date(self, ws: Worksheet, coordinate: str, serial: int, report: SheetReport) -> None:
        if self._write(ws, coordinate, serial, report):
            cell = ws[coordinate]
            if cell.number_format == "General":
                cell.number_format = self.layout.date_number_format

    def _warn(self, report: SheetReport, message: str) -> None:
        logger.warning(f"Blatt '{report.sheet_title}': {message}")
        report.warnings.append(message)

    def _write_header(self, ws: Worksheet, request: TimecardRequest, week: WeekBucket, report: SheetReport) -> None:
        cells = self.layout.header_cells
        self._write(ws, cells.employee_name, request.employee_name, report)
        self._write(ws, cells.pay_period_num, request.pay_period_num, report)
        self._write(ws, cells.year, request.year, report)
        self._write(ws, cells.week_label, week.label, report)
        self._write_date(ws, cells.week_start, to_serial(week.start), report)

    def _write_day_dates(self, ws: Worksheet, week: WeekBucket, report: SheetReport) -> None:
        for offset in range(DAYS_PER_WEEK):
            serial = to_serial(week.start + timedelta(days=offset))
            for overtime in (False, True):
                row = self.layout.day_row(offset, overtime)
                self._write_date(ws, f"{self.layout.date_column}{row}", serial, report)

    def _write_job_headers(self, ws: Worksheet, report: SheetReport) -> None:
        for job, pair in self.assignment:
            for header_row in (self.layout.regular_header_row, self.layout.overtime_header_row):
                self._write(ws, f"{pair.hours}{header_row}", job.job_code, report)
                self._write(ws, f"{pair.name}{header_row}", job.job_name, report)

    def _write_hours(self, ws: Worksheet, week: WeekBucket, report: SheetReport) -> None:
        aggregation = aggregate_hours(week.entries, resolve_job=self.assignment.resolve)
        for entry in aggregation.skipped:
            self._warn(report, f"Buchung mit ungültigem Datum übersprungen: {entry.date!r} ({entry.hours} h)")

        for item in aggregation.totals:
            offset = week.day_offset(item.day)
            if not 0 <= offset < DAYS_PER_WEEK:
                self._warn(report, f"{item.day.isoformat()} liegt außerhalb der Woche ab {week.start.date().isoformat()} ({item.hours} h, Job {item.job_code})")
                continue
            pair = self.assignment.columns_for(item.job_code)
            if pair is None:
                self._warn(report, f"Unbekannter Job {item.job_code!r} am {item.day.isoformat()} ({item.hours} h)")
                continue
            if item.hours == 0:
                continue
            row = self.layout.day_row(offset, item.overtime)
            # Stundenzellen sind nie geschützt
            self._write(ws, f"{pair.hours}{row}", item.hours, report, check_protected=False)
            report.hours_written += item.hours
            if item.night_hours:
                logger.info(f"Blatt '{ws.title}': Job {item.job_code} am {item.day}: davon {item.night_hours} h Nachtschicht")
                report.night_hours += item.night_hours

    def populate(self, ws: Worksheet, request: TimecardRequest, week: WeekBucket) -> SheetReport:
        report = SheetReport(sheet_title=ws.title, week_number=week.number)
        self._write_header(ws, request, week, report)
        self._write_day_dates(ws, week, report)
        self._write_job_headers(ws, report)
        self._write_hours(ws, week, report)
        logger.info(
            f"Blatt '{ws.title}' befüllt: {report.cells_written} Zellen, {report.hours_written} h (Nacht {report.night_hours} h), "
            f"{len(report.skipped_protected)} geschützt, {len(report.warnings)} Warnungen"
        )
        return report
