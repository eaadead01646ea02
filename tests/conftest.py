from pathlib import Path
from typing import Iterable

import pytest
import yaml
from openpyxl import Workbook

from shared_modules.config import Config
from timecards.modules.errors import ConversionError

TEMPLATE_SHEET = "Timecard"


def build_template(path: Path, extra_sheets: Iterable[str] = ()) -> Path:
    """
    Synthetische Timecard-Vorlage im Standard-Layout: Jahr (AJ3) als Formel,
    Tagesdaten ab Tag 2 bzw. im Überstundenblock als Formeln auf B5.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET
    ws["A2"] = "Employee"
    ws["AI2"] = "Pay period"
    ws["AI3"] = "Year"
    ws["AJ3"] = "=YEAR(B4)"
    ws["A4"] = "Date"
    ws["A14"] = "Overtime"
    for offset in range(1, 7):
        ws[f"B{5 + offset}"] = f"=B{4 + offset}+1"
    ws["B16"] = "=B5"
    for offset in range(1, 7):
        ws[f"B{16 + offset}"] = f"=B{15 + offset}+1"
    ws["AI12"] = "=SUM(C5:AH11)"
    for title in extra_sheets:
        wb.create_sheet(title)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def write_config(tmp_path: Path, **sections) -> Path:
    data = {
        "structure": {
            "prj_root": str(tmp_path),
            "template_path": "templates",
            "output_path": "output",
            "tmp_path": "tmp",
        },
        "logging": {"log_file": None, "log_level": "DEBUG"},
        "templates": {"timecard_template": "Timecard.xlsx"},
        "converter": {"enabled": False},
    }
    for key, value in sections.items():
        data.setdefault(key, {}).update(value)
    cfg_path = tmp_path / "timecard_config.yaml"
    cfg_path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return cfg_path


def load_config(cfg_path: Path) -> Config:
    Config._instance = None
    return Config(cfg_path)


class StubConverter:
    """Schreibt eine Platzhalter-PDF neben die Arbeitsmappe."""

    def __init__(self):
        self.calls = []

    def convert(self, workbook_path: Path, output_dir: Path) -> Path:
        self.calls.append(workbook_path)
        output_dir.mkdir(parents=True, exist_ok=True)
        pdf_path = output_dir / f"{workbook_path.stem}.pdf"
        pdf_path.write_bytes(b"%PDF-1.4\n% timecard\n")
        return pdf_path


class FailingConverter:
    def convert(self, workbook_path: Path, output_dir: Path) -> Path:
        raise ConversionError("Konverter absichtlich gescheitert")


@pytest.fixture
def template_file(tmp_path) -> Path:
    return build_template(tmp_path / "templates" / "Timecard.xlsx")


@pytest.fixture
def config_path(tmp_path, template_file) -> Path:
    return write_config(tmp_path)


@pytest.fixture
def config(config_path) -> Config:
    return load_config(config_path)


@pytest.fixture
def request_payload() -> dict:
    """Zwei Jobs, eine Woche: A 8 h an Tag 1, A 0.5 h und B 8 h an Tag 2."""
    return {
        "employee_name": "Max Muster",
        "pay_period_num": 1,
        "year": 2025,
        "week_start_date": "2025-01-05T00:00:00Z",
        "week_number_label": "Week 1",
        "jobs": [
            {"job_code": "29699", "job_name": "201"},
            {"job_code": "12607", "job_name": "223"},
        ],
        "entries": [
            {"date": "2025-01-05T00:00:00Z", "job_code": "29699", "hours": 8, "overtime": False, "night_shift": False},
            {"date": "2025-01-06T00:00:00Z", "job_code": "29699", "hours": 0.5, "overtime": False, "night_shift": False},
            {"date": "2025-01-06T00:00:00Z", "job_code": "12607", "hours": 8, "overtime": False, "night_shift": False},
        ],
    }
