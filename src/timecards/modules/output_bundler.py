from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from pydantic_models.config.output_config import OutputConfig
from pydantic_models.data.timecard_request import TimecardRequest
from shared_modules.utils import safe_filename, zip_files

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"
ZIP_MEDIA_TYPE = "application/zip"

DEFAULT_FILE_STEM = "Timecard_{employee}_{year}_PP{pay_period:02d}"


class OutputBundle(BaseModel):
    """Auslieferbares Ergebnis: Dateiname, MIME-Typ und Inhalt."""
    filename: str
    media_type: str
    content: bytes


class OutputBundler:
    """
    Packt die Ergebnisse einer Anfrage: nur Arbeitsmappe -> xlsx,
    Arbeitsmappe plus PDF -> ZIP-Archiv mit beiden Dateien.
    """

    def __init__(self, naming: Optional[OutputConfig] = None):
        self.pattern = (naming.file_stem if naming else None) or DEFAULT_FILE_STEM

    def file_stem(self, request: TimecardRequest) -> str:
        return self.pattern.format(
            employee=safe_filename(request.employee_name),
            year=request.year,
            pay_period=request.pay_period_num,
        )

    @staticmethod
    def single(path: Path, media_type: str) -> OutputBundle:
        return OutputBundle(filename=path.name, media_type=media_type, content=path.read_bytes())

    def bundle(self, workbook_path: Path, document_path: Optional[Path], work_dir: Path) -> OutputBundle:
        if document_path is None:
            logger.debug(f"Liefere nur Arbeitsmappe {workbook_path.name}")
            return self.single(workbook_path, XLSX_MEDIA_TYPE)

        zip_path = work_dir / f"{workbook_path.stem}.zip"
        zip_files([workbook_path, document_path], zip_path)
        logger.debug(f"ZIP-Archiv {zip_path.name} mit {workbook_path.name} und {document_path.name} erstellt")
        return self.single(zip_path, ZIP_MEDIA_TYPE)
