from __future__ import annotations

from typing import Set

from loguru import logger
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula
from openpyxl.worksheet.worksheet import Worksheet


def is_formula_cell(cell) -> bool:
    """Formel laut openpyxl-Datentyp, Array-/Datentabellen-Formel oder String mit führendem '='."""
    if cell.data_type == "f":
        return True
    value = cell.value
    if isinstance(value, (ArrayFormula, DataTableFormula)):
        return True
    # explizit als Text abgelegte Werte sind Literale, auch mit führendem "="
    return isinstance(value, str) and value.startswith("=") and cell.data_type != "s"


class ProtectedCellRegistry:
    """
    Merkt sich pro Blatt einmalig, welche Zellen der Vorlage Formeln enthalten.
    Diese Zellen werden beim Befüllen nicht überschrieben. Was danach geschrieben
    wird, ändert die Einstufung nicht mehr.
    """

    def __init__(self) -> None:
        self._protected: Set[str] = set()

    @classmethod
    def scan(cls, ws: Worksheet) -> "ProtectedCellRegistry":
        registry = cls()
        for row in ws.iter_rows():
            for cell in row:
                if is_formula_cell(cell):
                    registry._protected.add(cell.coordinate)
        logger.debug(f"Blatt '{ws.title}': {len(registry._protected)} Formelzellen geschützt.")
        return registry

    def is_protected(self, coordinate: str) -> bool:
        return coordinate.upper() in self._protected

    def __len__(self) -> int:
        return len(self._protected)
