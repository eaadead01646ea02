import re
import shutil
import tempfile
from contextlib import contextmanager
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional
from zipfile import ZIP_DEFLATED, ZipFile

from loguru import logger
from pydantic import BaseModel, ValidationError, field_validator


class PathList(BaseModel):
    """
    Pydantic-Modell für eine Liste von Dateipfaden.
    Sorgt für Validierung und Typsicherheit.
    """
    files: List[Path]

    @field_validator("files")
    def all_files_must_exist(cls, v: List[Path]) -> List[Path]:
        """
        Validiert, dass alle angegebenen Dateien existieren.
        """
        for file in v:
            if not file.exists():
                raise ValueError(f"Datei nicht gefunden: {file}")
        return v


def zip_files(files: List[Path], zip_path: Path) -> Path:
    """
    Erstellt ein ZIP-Archiv aus einer Liste von Dateien.
    Die Archiv-Einträge heißen wie die Dateien selbst.

    Args:
        files (List[Path]): Liste von Dateipfaden.
        zip_path (Path): Zielpfad für das ZIP-Archiv.

    Returns:
        Path: Pfad zum erzeugten Archiv.
    """
    try:
        file_list = PathList(files=files)
    except ValidationError as e:
        logger.error(f"Ungültige Dateiliste: {e}")
        raise

    with ZipFile(zip_path, "w", compression=ZIP_DEFLATED) as zipf:
        for file in file_list.files:
            zipf.write(file, arcname=file.name)
    return zip_path


def safe_str(val) -> str:
    """
    Gibt immer einen String zurück, auch wenn val None oder numerisch ist.
    """
    return "" if val is None else str(val)


_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w-]+")


def safe_filename(val: Any, fallback: str = "unbekannt") -> str:
    """
    Macht aus einem beliebigen Wert einen Dateinamen-Bestandteil
    (Leerzeichen -> Unterstrich, alles außer Buchstaben inkl. Umlauten, Ziffern, _ und - wird entfernt).
    """
    text = safe_str(val).strip().replace(" ", "_")
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", text)
    return cleaned or fallback


@contextmanager
def temporary_directory(prefix: str = "timecard_", base_dir: Optional[Path] = None) -> Generator[Path, None, None]:
    """
    Context-Manager für ein temporäres Arbeitsverzeichnis.
    Das Verzeichnis wird samt Inhalt beim Verlassen des Blocks gelöscht,
    auch wenn im Block eine Exception auftritt.

    Args:
        prefix (str): Präfix des Verzeichnisnamens.
        base_dir (Optional[Path]): Übergeordnetes Verzeichnis (Standard: System-Temp).

    Yields:
        Path: Pfad zum temporären Verzeichnis.

    Beispiel:
        with temporary_directory() as work_dir:
            # Schreibe Dateien nach work_dir
            ...
        # Nach dem Block ist work_dir entfernt.
    """
    if base_dir is not None:
        ensure_dir(base_dir)
    tmp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=str(base_dir) if base_dir else None))
    logger.debug(f"Temporäres Verzeichnis angelegt: {tmp_dir}")
    try:
        yield tmp_dir
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        logger.debug(f"Temporäres Verzeichnis entfernt: {tmp_dir}")


# Zeitstempel-Formate (RFC 3339 wie vom Client geliefert, plus reines Datum)
TIMESTAMP_FORMATS: tuple[str, ...] = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%d")


def _as_utc(d: datetime) -> datetime:
    if d.tzinfo is None:
        return d.replace(tzinfo=timezone.utc)
    return d.astimezone(timezone.utc)


def _parse_timestamp_str(s: str) -> Optional[datetime]:
    s = s.strip()
    if s[-1:] in ("Z", "z"):
        s = s[:-1] + "+00:00"
    for fmt in TIMESTAMP_FORMATS:
        try:
            return _as_utc(datetime.strptime(s, fmt))
        except (ValueError, OverflowError):
            continue
    return None


_TIMESTAMP_CONVERTERS: Dict[type, Callable[[Any], Optional[datetime]]] = {
    datetime: _as_utc,
    date: lambda v: datetime.combine(v, time(), tzinfo=timezone.utc),
    str: _parse_timestamp_str,
    type(None): lambda _v: None,
}


def to_utc_datetime(v: Any) -> Optional[datetime]:
    """Typbasierte Zeitstempel-Konvertierung (None/str/date/datetime -> datetime in UTC|None)."""
    conv = _TIMESTAMP_CONVERTERS.get(type(v))
    return conv(v) if conv else None


def start_of_day(d: datetime) -> datetime:
    """Schneidet die Uhrzeit ab (Mitternacht, Zeitzone bleibt erhalten)."""
    return d.replace(hour=0, minute=0, second=0, microsecond=0)


def ensure_dir(path: Path) -> Path:
    """Erzeugt ein Verzeichnis (rekursiv), falls es fehlt, und gibt den Pfad zurück."""
    path.mkdir(parents=True, exist_ok=True)
    return path
