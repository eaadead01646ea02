"""
Umrechnung Kalenderdatum <-> Excel-Seriennummer (1900er Datumssystem).

Die effektive Epoche ist der 30.12.1899; damit ist der fiktive 29.02.1900 von
Excel bereits berücksichtigt. Unterstützt wird der Bereich 01.03.1900 (Serial 61)
bis 31.12.9999. Werte außerhalb werden abgelehnt, nie abgeschnitten.
"""

from datetime import date, datetime
from typing import Union

from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel, to_excel

MIN_DATE = date(1900, 3, 1)
MAX_DATE = date(9999, 12, 31)
MIN_SERIAL = 61
MAX_SERIAL = 2958465


class DateSerialRangeError(ValueError):
    """Datum bzw. Seriennummer liegt außerhalb des unterstützten Bereichs."""


def to_serial(d: Union[date, datetime]) -> int:
    """
    Liefert die Excel-Seriennummer eines Kalenderdatums.
    Bei einem datetime zählt nur der Kalendertag (Uhrzeit und Zeitzone werden ignoriert).
    """
    day = d.date() if isinstance(d, datetime) else d
    if not MIN_DATE <= day <= MAX_DATE:
        raise DateSerialRangeError(f"Datum außerhalb des unterstützten Bereichs: {day.isoformat()}")
    return int(to_excel(day, epoch=WINDOWS_EPOCH))


def from_serial(value: Union[int, float]) -> date:
    """
    Liefert das Kalenderdatum zu einer Excel-Seriennummer.
    Nachkommastellen (Uhrzeit) werden abgelehnt.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Seriennummer muss numerisch sein, nicht {type(value).__name__}")
    if not float(value).is_integer():
        raise DateSerialRangeError(f"Seriennummer mit Uhrzeitanteil wird nicht unterstützt: {value}")
    serial = int(value)
    if not MIN_SERIAL <= serial <= MAX_SERIAL:
        raise DateSerialRangeError(f"Seriennummer außerhalb des unterstützten Bereichs: {serial}")
    return from_excel(serial, epoch=WINDOWS_EPOCH).date()
