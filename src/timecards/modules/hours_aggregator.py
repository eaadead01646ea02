from __future__ import annotations

from datetime import date
from typing import Callable, Iterable, List, Optional

import pandas as pd
from loguru import logger
from pydantic import BaseModel, Field

from pydantic_models.data.timecard_request import Entry
from shared_modules.utils import to_utc_datetime

GROUP_KEYS = ["day", "job_code", "overtime"]


class AggregatedHours(BaseModel):
    """
    Summe je (Tag, Job, Überstunden). Nachtschicht ist kein Teil des Schlüssels,
    der Nachtanteil wird nur zur Information mitgeführt.
    """
    day: date
    job_code: str
    overtime: bool
    hours: float
    night_hours: float = 0.0


class HoursAggregation(BaseModel):
    totals: List[AggregatedHours] = Field(default_factory=list)
    skipped: List[Entry] = Field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return sum(item.hours for item in self.totals)

    @property
    def skipped_hours(self) -> float:
        return sum(entry.hours for entry in self.skipped)


def aggregate_hours(
    entries: Iterable[Entry],
    resolve_job: Optional[Callable[[str], Optional[str]]] = None,
) -> HoursAggregation:
    """
    Summiert die Stunden einer Woche je (Datum, Job-Code, Überstunden-Flag).

    Args:
        entries: Buchungen eines Wochen-Buckets.
        resolve_job: Optionale Abbildung Job-Referenz -> Job-Code (z. B. Lohncode -> Job-Nummer).
            Nicht auflösbare Referenzen bleiben unverändert und werden beim Befüllen gemeldet.

    Returns:
        HoursAggregation: Summen (sortiert nach Tag, Job, Flag) plus übersprungene Buchungen.
    """
    rows = []
    skipped: List[Entry] = []
    for entry in entries:
        ts = to_utc_datetime(entry.date)
        if ts is None:
            logger.warning(f"Buchung mit ungültigem Datum nicht summiert: {entry.date!r} ({entry.hours} h, Job {entry.job_code})")
            skipped.append(entry)
            continue
        code = (resolve_job(entry.job_code) if resolve_job else None) or entry.job_code
        rows.append(
            {
                "day": ts.date(),
                "job_code": code,
                "overtime": entry.overtime,
                "hours": entry.hours,
                "night_hours": entry.hours if entry.night_shift else 0.0,
            }
        )

    if not rows:
        return HoursAggregation(skipped=skipped)

    df = pd.DataFrame(rows)
    grouped = df.groupby(GROUP_KEYS, sort=True, as_index=False)[["hours", "night_hours"]].sum()
    totals = [
        AggregatedHours(
            day=row.day,
            job_code=str(row.job_code),
            overtime=bool(row.overtime),
            hours=float(row.hours),
            night_hours=float(row.night_hours),
        )
        for row in grouped.itertuples(index=False)
    ]
    logger.debug(f"{len(rows)} Buchungen zu {len(totals)} Summen zusammengefasst.")
    return HoursAggregation(totals=totals, skipped=skipped)
