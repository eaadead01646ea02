from __future__ import annotations

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field

from pydantic_models.data.timecard_request import Entry


class WeekBucket(BaseModel):
    """
    Normalisierte Woche: Startzeitpunkt (UTC), Beschriftung und die Buchungen,
    die in das halboffene Intervall [start, start + 7 Tage) fallen.
    """
    number: int
    start: datetime
    label: str
    entries: List[Entry] = Field(default_factory=list)

    def day_offset(self, day: date) -> int:
        """Kalendertage zwischen Wochenstart und 'day' (0 = erster Tag)."""
        return (day - self.start.date()).days
