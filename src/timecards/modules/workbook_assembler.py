from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence
from zipfile import BadZipFile

from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from pydantic_models.config.templates_config import TemplateLayout
from pydantic_models.data.timecard_request import TimecardRequest
from pydantic_models.data.week_bucket import WeekBucket
from timecards.modules.column_allocator import JobColumnAllocator
from timecards.modules.errors import ColumnCapacityError, MalformedRequestError, TemplateError
from timecards.modules.protected_cells import ProtectedCellRegistry
from timecards.modules.sheet_populator import SheetPopulator, SheetReport


class WorkbookAssembler:
    """
    Baut aus der Vorlage eine Arbeitsmappe mit einem Blatt pro Woche.

    Ablauf: Spalten einmal für die ganze Anfrage zuordnen, alle Wochenblätter
    bereitstellen (solange die Vorlage noch unberührt ist), dann jedes Blatt
    befüllen und zum Schluss das erste Blatt aktiv setzen.
    """

    def __init__(self, layout: TemplateLayout, template_path: Path, template_sheet_name: Optional[str] = None):
        self.layout = layout
        self.template_path = Path(template_path)
        self.template_sheet_name = template_sheet_name
        self.reports: List[SheetReport] = []

    def _load_template(self) -> Workbook:
        if not self.template_path.exists():
            logger.error(f"Timecard-Template nicht gefunden: {self.template_path}")
            raise TemplateError(f"Timecard-Template nicht gefunden: {self.template_path.name}")
        try:
            return load_workbook(self.template_path)
        except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
            logger.error(f"Fehler beim Laden des Templates {self.template_path.name}: {exc}")
            raise TemplateError(f"Timecard-Template konnte nicht geladen werden: {exc}") from exc

    def _template_sheet(self, wb: Workbook) -> Worksheet:
        if self.template_sheet_name:
            if self.template_sheet_name not in wb.sheetnames:
                raise TemplateError(f"Sheet '{self.template_sheet_name}' fehlt im Template.")
            return wb[self.template_sheet_name]
        return wb.worksheets[0]

    def _prepare_sheets(self, wb: Workbook, template_ws: Worksheet, weeks: Sequence[WeekBucket]) -> List[Worksheet]:
        """Blatt je Woche: Woche 1 ist das Vorlagenblatt, weitere werden wiederverwendet oder kopiert."""
        sheets = [template_ws]
        for week in weeks[1:]:
            title = self.layout.sheet_title(week.number)
            if title in wb.sheetnames:
                ws = wb[title]
                if ws is template_ws:
                    raise TemplateError(f"Wochenblatt '{title}' ist zugleich das Vorlagenblatt.")
                logger.debug(f"Wochenblatt '{title}' aus dem Template wiederverwendet.")
            else:
                ws = wb.copy_worksheet(template_ws)
                ws.title = title
                logger.debug(f"Wochenblatt '{title}' aus '{template_ws.title}' kopiert.")
            sheets.append(ws)
        return sheets

    def assemble(self, request: TimecardRequest, weeks: Sequence[WeekBucket]) -> Workbook:
        """
        Raises:
            MalformedRequestError: Keine Woche übergeben.
            ColumnCapacityError: Mehr Jobs oder Wochen als die Vorlage aufnehmen kann.
            TemplateError: Vorlage fehlt, ist defekt oder das Vorlagenblatt fehlt.
        """
        if not weeks:
            raise MalformedRequestError("Keine Woche zum Befüllen vorhanden.")
        if len(weeks) > self.layout.max_weeks:
            excess = [week.label for week in weeks[self.layout.max_weeks:]]
            raise ColumnCapacityError(
                f"Zu viele Wochen: {len(weeks)} angefragt, höchstens {self.layout.max_weeks} möglich.",
                excess=excess,
            )

        assignment = JobColumnAllocator(self.layout.column_pairs).allocate(request.jobs)

        wb = self._load_template()
        template_ws = self._template_sheet(wb)
        sheets = self._prepare_sheets(wb, template_ws, weeks)

        self.reports = []
        for ws, week in zip(sheets, weeks):
            registry = ProtectedCellRegistry.scan(ws)
            populator = SheetPopulator(self.layout, assignment, registry)
            self.reports.append(populator.populate(ws, request, week))

        wb.active = wb.worksheets.index(template_ws)
        logger.info(f"Arbeitsmappe mit {len(sheets)} Wochenblatt/-blättern für {request.employee_name} erstellt.")
        return wb
