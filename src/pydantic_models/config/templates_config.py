from typing import List, Optional

from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException
from pydantic import BaseModel, Field, field_validator, model_validator

DAYS_PER_WEEK = 7

# Spaltenpaare der Vorlage: Stunden in C, E, ... AG, Job-Bezeichnung daneben in D, F, ... AH
DEFAULT_HOURS_COLUMNS = ["C", "E", "G", "I", "K", "M", "O", "Q", "S", "U", "W", "Y", "AA", "AC", "AE", "AG"]
DEFAULT_NAME_COLUMNS = ["D", "F", "H", "J", "L", "N", "P", "R", "T", "V", "X", "Z", "AB", "AD", "AF", "AH"]


def _check_column(value: str) -> str:
    col = value.strip().upper()
    try:
        column_index_from_string(col)
    except ValueError as exc:
        raise ValueError(f"Ungültige Spalte: {value}") from exc
    return col


class TimecardHeaderCells(BaseModel):
    """
    Zelladressen im Excel-Template für die Kopfwerte eines Wochenblatts.
    """
    employee_name: str = "M2"
    pay_period_num: str = "AJ2"
    year: str = "AJ3"
    week_start: str = "B4"      # Datum (Excel-Seriennummer)
    week_label: str = "AJ4"

    @field_validator("*")
    @classmethod
    def valid_address(cls, v: str) -> str:
        addr = v.strip().upper()
        try:
            coordinate_from_string(addr)
        except CellCoordinatesException as exc:
            raise ValueError(f"Ungültige Zelladresse: {v}") from exc
        return addr


class ColumnPair(BaseModel):
    """
    Ein Job-Slot der Vorlage: Stundenspalte plus Spalte für die Job-Bezeichnung.
    """
    hours: str
    name: str

    @field_validator("hours", "name")
    @classmethod
    def valid_column(cls, v: str) -> str:
        return _check_column(v)


def _default_column_pairs() -> List[ColumnPair]:
    return [ColumnPair(hours=h, name=n) for h, n in zip(DEFAULT_HOURS_COLUMNS, DEFAULT_NAME_COLUMNS)]


class TemplateLayout(BaseModel):
    """
    Das komplette Layout-Wissen über die Timecard-Vorlage an einer Stelle.

    Regulär- und Überstundenblock bestehen jeweils aus einer Kopfzeile für die Jobs
    und sieben Tageszeilen (erste Tageszeile + Tagesoffset 0..6). Die Spaltenpaare
    bilden den geordneten Pool, aus dem die Jobs ihre Spalten beziehen.
    """
    header_cells: TimecardHeaderCells = Field(default_factory=TimecardHeaderCells)
    date_column: str = "B"
    regular_header_row: int = 4
    regular_first_row: int = 5
    overtime_header_row: int = 15
    overtime_first_row: int = 16
    column_pairs: List[ColumnPair] = Field(default_factory=_default_column_pairs)
    week_sheet_title: str = "Week {number}"
    max_weeks: int = 5
    date_number_format: str = "yyyy-mm-dd"

    @field_validator("date_column")
    @classmethod
    def valid_date_column(cls, v: str) -> str:
        return _check_column(v)

    @model_validator(mode="after")
    def consistent_blocks(self) -> "TemplateLayout":
        if not self.column_pairs:
            raise ValueError("column_pairs darf nicht leer sein")
        used = [c for pair in self.column_pairs for c in (pair.hours, pair.name)]
        if len(used) != len(set(used)):
            raise ValueError("column_pairs enthält doppelte Spalten")
        if self.date_column in used:
            raise ValueError("date_column überschneidet sich mit column_pairs")
        for header_row, first_row in (
            (self.regular_header_row, self.regular_first_row),
            (self.overtime_header_row, self.overtime_first_row),
        ):
            if first_row <= header_row:
                raise ValueError("Die erste Tageszeile muss unterhalb der Kopfzeile liegen")
        regular = set(range(self.regular_first_row, self.regular_first_row + DAYS_PER_WEEK))
        overtime = set(range(self.overtime_first_row, self.overtime_first_row + DAYS_PER_WEEK))
        if regular & overtime:
            raise ValueError("Regulär- und Überstundenblock überschneiden sich")
        if self.max_weeks < 1:
            raise ValueError("max_weeks muss >= 1 sein")
        return self

    @property
    def pool_size(self) -> int:
        return len(self.column_pairs)

    def day_row(self, offset: int, overtime: bool) -> int:
        base = self.overtime_first_row if overtime else self.regular_first_row
        return base + offset

    def sheet_title(self, number: int) -> str:
        return self.week_sheet_title.format(number=number)


class TemplatesConfig(BaseModel):
    timecard_template: Optional[str] = "Timecard.xlsx"
    template_sheet_name: Optional[str] = None
    layout: TemplateLayout = Field(default_factory=TemplateLayout)
