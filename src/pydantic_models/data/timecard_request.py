from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Job(BaseModel):
    """
    Ein Job der Anfrage. Die Reihenfolge der Jobs bestimmt die Spaltenzuordnung.
    job_code ist die Job-Nummer (z. B. "29699"), job_name die Anzeige-Bezeichnung
    bzw. der Lohncode (z. B. "201").
    """
    job_code: str
    job_name: str = ""

    @field_validator("job_code")
    @classmethod
    def code_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("job_code darf nicht leer sein")
        return v


class Entry(BaseModel):
    """
    Eine einzelne Zeitbuchung. Unveränderlich; das Datum bleibt ein String und
    wird erst bei der Normalisierung geparst, damit ein ungültiges Datum nur die
    Buchung und nicht die ganze Anfrage kostet.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str
    job_code: str
    hours: float = Field(ge=0, allow_inf_nan=False)
    overtime: bool = False
    # ältere Clients senden "is_night_shift"
    night_shift: bool = Field(False, validation_alias=AliasChoices("night_shift", "is_night_shift"))


class WeekData(BaseModel):
    """
    Eine vom Client bereits partitionierte Woche.
    """
    week_number: Optional[int] = None
    week_start_date: str
    week_label: str = ""
    entries: List[Entry] = Field(default_factory=list)


class TimecardRequest(BaseModel):
    """
    Fachliches Datenmodell der Timecard-Anfrage (JSON-Body, snake_case).
    Sind 'weeks' gesetzt und nicht leer, haben sie Vorrang vor der flachen Liste 'entries'.
    """
    employee_name: str
    pay_period_num: int
    year: int
    week_start_date: Optional[str] = None
    week_number_label: str = ""
    jobs: List[Job] = Field(default_factory=list)
    entries: Optional[List[Entry]] = None
    weeks: Optional[List[WeekData]] = None
    include_pdf: bool = False

    @field_validator("jobs")
    @classmethod
    def unique_job_codes(cls, v: List[Job]) -> List[Job]:
        seen: set[str] = set()
        duplicates: List[str] = []
        for job in v:
            if job.job_code in seen:
                duplicates.append(job.job_code)
            seen.add(job.job_code)
        if duplicates:
            raise ValueError(f"job_code muss eindeutig sein, doppelt: {', '.join(duplicates)}")
        return v


class DeliveryRequest(TimecardRequest):
    """
    Timecard-Anfrage plus Versanddaten. 'to' und 'cc' akzeptieren eine
    kommagetrennte Adressliste oder ein JSON-Array.
    """
    to: List[str]
    cc: List[str] = Field(default_factory=list)
    subject: str
    body: str = ""

    @field_validator("to", "cc", mode="before")
    @classmethod
    def split_addresses(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        if isinstance(v, list):
            return [str(part).strip() for part in v if str(part).strip()]
        return v

    @field_validator("to")
    @classmethod
    def at_least_one_recipient(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("mindestens ein Empfänger ('to') ist nötig")
        return v
