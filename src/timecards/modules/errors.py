from typing import List, Optional


class TimecardError(Exception):
    """
    Basisklasse aller Fehler der Timecard-Erzeugung.
    'status_code' ist der HTTP-Status, mit dem die Web-API den Fehler beantwortet.
    """
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedRequestError(TimecardError):
    """Anfrage ist strukturell ungültig (fehlende Pflichtfelder, ungültiges Startdatum, doppelte Jobs)."""
    status_code = 400


class ColumnCapacityError(TimecardError):
    """
    Mehr Jobs (oder Wochen) als die Vorlage Plätze hat.
    'excess' enthält die Job-Codes bzw. Wochen, die nicht mehr untergebracht werden konnten.
    """
    status_code = 422

    def __init__(self, message: str, excess: Optional[List[str]] = None):
        super().__init__(message)
        self.excess: List[str] = list(excess or [])


class TemplateError(TimecardError):
    """Vorlage fehlt, ist defekt oder ein benötigtes Blatt existiert nicht."""
    status_code = 500


class ConversionError(TimecardError):
    """Der externe Dokument-Konverter (LibreOffice) ist gescheitert."""
    status_code = 503


class DeliveryError(TimecardError):
    """Versand per E-Mail ist gescheitert oder nicht konfiguriert."""
    status_code = 502
