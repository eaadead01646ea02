from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Protocol

from loguru import logger
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from pydantic_models.config.converter_config import ConverterConfig
from shared_modules.utils import ensure_dir
from timecards.modules.errors import ConversionError


class DocumentConverter(Protocol):
    """Wandelt eine gespeicherte Arbeitsmappe in ein paginiertes Dokument (PDF) um."""

    def convert(self, workbook_path: Path, output_dir: Path) -> Path:
        ...


def verify_pdf(pdf_path: Path) -> int:
    """
    Prüft, ob die erzeugte PDF existiert und lesbar ist. Gibt die Seitenzahl zurück.
    """
    if not pdf_path.exists():
        raise ConversionError(f"Konverter hat keine PDF erzeugt: {pdf_path.name}")
    try:
        pages = len(PdfReader(str(pdf_path)).pages)
    except (PdfReadError, OSError, ValueError) as exc:
        raise ConversionError(f"Erzeugte PDF ist nicht lesbar: {exc}") from exc
    if pages == 0:
        raise ConversionError(f"Erzeugte PDF enthält keine Seiten: {pdf_path.name}")
    return pages


class LibreOfficeConverter:
    """
    PDF-Konvertierung mit LibreOffice im Headless-Modus.
    Jeder Aufruf bekommt ein eigenes Benutzerprofil im Ausgabeverzeichnis,
    damit parallele Instanzen sich nicht gegenseitig sperren.
    """

    def __init__(self, command: str = "soffice", timeout_seconds: float = 60.0):
        self.command = command
        self.timeout_seconds = timeout_seconds

    def convert(self, workbook_path: Path, output_dir: Path) -> Path:
        binary = shutil.which(self.command)
        if binary is None:
            logger.error(f"LibreOffice nicht gefunden: {self.command}")
            raise ConversionError(f"Konverter '{self.command}' ist nicht installiert.")

        ensure_dir(output_dir)
        profile_dir = ensure_dir(output_dir / "lo_profile")
        cmd = [
            binary,
            f"-env:UserInstallation={profile_dir.resolve().as_uri()}",
            "--headless",
            "--convert-to",
            "pdf",
            "--outdir",
            str(output_dir),
            str(workbook_path),
        ]
        logger.debug(f"Starte PDF-Konvertierung: {' '.join(cmd)}")
        try:
            subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error(f"PDF-Konvertierung nach {self.timeout_seconds}s abgebrochen.")
            raise ConversionError(f"PDF-Konvertierung Zeitüberschreitung ({self.timeout_seconds}s)") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode(errors="replace").strip()
            logger.error(f"PDF-Konvertierung fehlgeschlagen (Exit {exc.returncode}): {stderr}")
            raise ConversionError(f"PDF-Konvertierung fehlgeschlagen (Exit {exc.returncode})") from exc
        except OSError as exc:
            logger.error(f"PDF-Konvertierung konnte nicht gestartet werden: {exc}")
            raise ConversionError(f"PDF-Konvertierung konnte nicht gestartet werden: {exc}") from exc

        pdf_path = output_dir / f"{workbook_path.stem}.pdf"
        pages = verify_pdf(pdf_path)
        logger.debug(f"{pdf_path.name} erzeugt ({pages} Seiten)")
        return pdf_path


class DisabledConverter:
    """Konverter-Ersatz, wenn die PDF-Erzeugung abgeschaltet ist. Scheitert immer."""

    def convert(self, workbook_path: Path, output_dir: Path) -> Path:
        raise ConversionError("PDF-Konvertierung ist deaktiviert.")


def build_converter(config: ConverterConfig) -> DocumentConverter:
    if not config.enabled:
        logger.info("PDF-Konvertierung laut Konfiguration deaktiviert.")
        return DisabledConverter()
    return LibreOfficeConverter(command=config.command or "soffice", timeout_seconds=config.timeout_seconds)
