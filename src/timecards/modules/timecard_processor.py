from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from loguru import logger

from pydantic_models.data.timecard_request import DeliveryRequest, TimecardRequest
from shared_modules.config import Config
from shared_modules.utils import temporary_directory
from timecards.modules.document_converter import DocumentConverter, build_converter
from timecards.modules.errors import ConversionError, TemplateError
from timecards.modules.mail_delivery import DeliveryReceipt, SmtpMailer, smtp_password
from timecards.modules.output_bundler import PDF_MEDIA_TYPE, OutputBundle, OutputBundler
from timecards.modules.request_normalizer import normalize_weeks
from timecards.modules.workbook_assembler import WorkbookAssembler


class TimecardProcessor:
    """
    Steuert eine Anfrage durch die ganze Kette: Normalisieren, Arbeitsmappe
    bauen, optional PDF erzeugen, dann bündeln oder versenden.
    Jede Anfrage arbeitet in einem eigenen temporären Verzeichnis, das am Ende
    immer entfernt wird.
    """

    def __init__(
        self,
        config: Config,
        converter: Optional[DocumentConverter] = None,
        mailer: Optional[SmtpMailer] = None,
    ):
        self.config = config
        self.converter: DocumentConverter = converter or build_converter(config.converter)
        self.bundler = OutputBundler(config.output)
        self._mailer = mailer

    @property
    def mailer(self) -> SmtpMailer:
        if self._mailer is None:
            self._mailer = SmtpMailer(self.config.delivery, password=smtp_password(self.config))
        return self._mailer

    def _render_workbook(self, request: TimecardRequest, work_dir: Path) -> Path:
        weeks = normalize_weeks(request)
        assembler = WorkbookAssembler(
            self.config.templates.layout,
            self.config.template_file,
            self.config.templates.template_sheet_name,
        )
        wb = assembler.assemble(request, weeks)
        warnings = sum(len(report.warnings) for report in assembler.reports)
        if warnings:
            logger.warning(f"Timecard für {request.employee_name}: {warnings} Datenqualitäts-Warnung(en)")

        workbook_path = work_dir / f"{self.bundler.file_stem(request)}.xlsx"
        try:
            wb.save(workbook_path)
        except OSError as exc:
            logger.error(f"Fehler beim Speichern der Datei {workbook_path.name}: {exc}")
            raise TemplateError(f"Arbeitsmappe konnte nicht gespeichert werden: {exc}") from exc
        finally:
            wb.close()
        logger.debug(f"Arbeitsmappe gespeichert: {workbook_path}")
        return workbook_path

    def _convert(self, workbook_path: Path, work_dir: Path) -> Path:
        return self.converter.convert(workbook_path, work_dir / "pdf")

    def _try_convert(self, workbook_path: Path, work_dir: Path) -> Optional[Path]:
        try:
            return self._convert(workbook_path, work_dir)
        except ConversionError as exc:
            logger.warning(f"PDF-Erzeugung fehlgeschlagen, liefere nur die Arbeitsmappe: {exc}")
            return None

    def generate(self, request: TimecardRequest) -> OutputBundle:
        """Arbeitsmappe, bei include_pdf und erfolgreicher Konvertierung als ZIP mit PDF."""
        logger.info(f"Erzeuge Timecard für {request.employee_name} (PP{request.pay_period_num}/{request.year})")
        with temporary_directory(base_dir=self.config.tmp_dir) as work_dir:
            workbook_path = self._render_workbook(request, work_dir)
            document_path = self._try_convert(workbook_path, work_dir) if request.include_pdf else None
            return self.bundler.bundle(workbook_path, document_path, work_dir)

    def generate_document(self, request: TimecardRequest) -> OutputBundle:
        """
        Nur das PDF. Scheitert die Konvertierung, ist das hier ein Fehler, da es
        keine Arbeitsmappe als Ersatz gibt.
        """
        logger.info(f"Erzeuge Timecard-PDF für {request.employee_name} (PP{request.pay_period_num}/{request.year})")
        with temporary_directory(base_dir=self.config.tmp_dir) as work_dir:
            workbook_path = self._render_workbook(request, work_dir)
            document_path = self._convert(workbook_path, work_dir)
            return self.bundler.single(document_path, PDF_MEDIA_TYPE)

    def deliver(self, request: DeliveryRequest) -> DeliveryReceipt:
        """Erzeugt die Timecard und versendet Arbeitsmappe (und ggf. PDF) per E-Mail."""
        with temporary_directory(base_dir=self.config.tmp_dir) as work_dir:
            workbook_path = self._render_workbook(request, work_dir)
            attachments: List[Path] = [workbook_path]
            if request.include_pdf:
                document_path = self._try_convert(workbook_path, work_dir)
                if document_path is not None:
                    attachments.append(document_path)
            return self.mailer.send(request, attachments)
