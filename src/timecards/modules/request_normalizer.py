from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from loguru import logger

from pydantic_models.config.templates_config import DAYS_PER_WEEK
from pydantic_models.data.timecard_request import Entry, TimecardRequest, WeekData
from pydantic_models.data.week_bucket import WeekBucket
from shared_modules.utils import start_of_day, to_utc_datetime
from timecards.modules.date_serial import MAX_DATE, MIN_DATE
from timecards.modules.errors import MalformedRequestError

WEEK = timedelta(days=DAYS_PER_WEEK)
DEFAULT_LABEL = "Week {number}"
# letzter Wochenstart, dessen sieben Tage noch als Excel-Datum darstellbar sind
LAST_WEEK_START = MAX_DATE - timedelta(days=DAYS_PER_WEEK - 1)


def _checked_start(start: datetime) -> datetime:
    if not MIN_DATE <= start.date() <= LAST_WEEK_START:
        raise MalformedRequestError(
            f"Wochenstart {start.date().isoformat()} außerhalb des unterstützten Bereichs "
            f"({MIN_DATE.isoformat()} bis {LAST_WEEK_START.isoformat()})"
        )
    return start


def _week_start(value: Optional[str]) -> Optional[datetime]:
    parsed = to_utc_datetime(value)
    return _checked_start(start_of_day(parsed)) if parsed is not None else None


def _from_supplied_weeks(weeks: List[WeekData]) -> List[WeekBucket]:
    """Vom Client partitionierte Wochen übernehmen, nach Startdatum sortiert (stabil)."""
    parsed: List[Tuple[datetime, WeekData]] = []
    for week in weeks:
        start = _week_start(week.week_start_date)
        if start is None:
            raise MalformedRequestError(f"Ungültiges week_start_date in weeks: {week.week_start_date!r}")
        parsed.append((start, week))

    parsed.sort(key=lambda item: item[0])
    buckets: List[WeekBucket] = []
    for position, (start, week) in enumerate(parsed, start=1):
        label = week.week_label or DEFAULT_LABEL.format(number=week.week_number or position)
        buckets.append(WeekBucket(number=position, start=start, label=label, entries=list(week.entries)))
    return buckets


def _partition_entries(request: TimecardRequest, entries: List[Entry]) -> List[WeekBucket]:
    """
    Flache Buchungsliste auf (höchstens) zwei Wochen verteilen.
    Woche 1 ist [start, start + 7 Tage), alles ab Tag 7 landet in Woche 2.
    """
    dated: List[Tuple[datetime, Entry]] = []
    for entry in entries:
        ts = to_utc_datetime(entry.date)
        if ts is None:
            logger.warning(f"Buchung mit ungültigem Datum übersprungen: {entry.date!r} (Job {entry.job_code})")
            continue
        dated.append((ts, entry))

    week1_start = _week_start(request.week_start_date)
    if week1_start is None:
        if request.week_start_date:
            logger.warning(f"week_start_date {request.week_start_date!r} ungültig, Wochenstart wird aus den Buchungen abgeleitet.")
        if not dated:
            raise MalformedRequestError("Kein gültiges week_start_date und keine Buchung mit gültigem Datum.")
        week1_start = _checked_start(start_of_day(min(ts for ts, _entry in dated)))

    week1: List[Entry] = []
    week2: List[Entry] = []
    for ts, entry in dated:
        elapsed = ts - week1_start
        if elapsed >= WEEK:
            if elapsed >= 2 * WEEK:
                logger.warning(f"Buchung {entry.date} liegt mehr als zwei Wochen nach dem Start und wird Woche 2 zugeordnet.")
            week2.append(entry)
        else:
            week1.append(entry)

    buckets = [
        WeekBucket(
            number=1,
            start=week1_start,
            label=request.week_number_label or DEFAULT_LABEL.format(number=1),
            entries=week1,
        )
    ]
    if week2:
        week2_start = _checked_start(week1_start + WEEK)
        buckets.append(WeekBucket(number=2, start=week2_start, label=DEFAULT_LABEL.format(number=2), entries=week2))
    return buckets


def normalize_weeks(request: TimecardRequest) -> List[WeekBucket]:
    """
    Bringt eine Anfrage in die kanonische Form: nach Start sortierte Wochen-Buckets.

    - 'weeks' (nicht leer) hat Vorrang und wird als bereits partitioniert übernommen.
    - Sonst wird die flache Liste 'entries' auf zwei Wochen verteilt.
    - Ohne beides entsteht ein leerer Bucket ab week_start_date (nur Kopfdaten).

    Raises:
        MalformedRequestError: Wenn kein gültiger Wochenstart ermittelt werden kann
            oder eine Woche nicht vollständig im darstellbaren Datumsbereich liegt.
    """
    if request.weeks:
        buckets = _from_supplied_weeks(request.weeks)
    elif request.entries:
        buckets = _partition_entries(request, request.entries)
    else:
        start = _week_start(request.week_start_date)
        if start is None:
            raise MalformedRequestError("Ohne Buchungen ist ein gültiges week_start_date Pflicht.")
        buckets = [WeekBucket(number=1, start=start, label=request.week_number_label or DEFAULT_LABEL.format(number=1))]

    for bucket in buckets:
        logger.debug(f"Woche {bucket.number} ({bucket.label}) ab {bucket.start.date()}: {len(bucket.entries)} Buchungen")
    return buckets
