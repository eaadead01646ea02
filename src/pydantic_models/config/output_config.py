from typing import Optional

from pydantic import BaseModel, field_validator


class OutputConfig(BaseModel):
    # Platzhalter: employee, year, pay_period
    file_stem: Optional[str] = "Timecard_{employee}_{year}_PP{pay_period:02d}"

    @field_validator("file_stem")
    @classmethod
    def known_placeholders(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            v.format(employee="X", year=2025, pay_period=1)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Ungültiges Dateinamenmuster '{v}': {exc}") from exc
        return v
