from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from pydantic_models.config.templates_config import ColumnPair
from pydantic_models.data.timecard_request import Job
from timecards.modules.errors import ColumnCapacityError


class ColumnAssignment:
    """
    Ergebnis der Spaltenzuordnung: Job-Code -> (Stundenspalte, Namensspalte).
    Die Reihenfolge entspricht der Job-Liste der Anfrage.
    """

    def __init__(self, slots: List[Tuple[Job, ColumnPair]]):
        self._slots = slots
        self._by_code: Dict[str, ColumnPair] = {job.job_code: pair for job, pair in slots}
        # Der mobile Client schickt teils den Lohncode (job_name) statt der Job-Nummer
        self._code_by_name: Dict[str, str] = {}
        for job, _pair in slots:
            if job.job_name and job.job_name not in self._code_by_name:
                self._code_by_name[job.job_name] = job.job_code

    def __iter__(self) -> Iterator[Tuple[Job, ColumnPair]]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def resolve(self, reference: str) -> Optional[str]:
        """Job-Referenz einer Buchung -> Job-Code (erst per Code, dann per Name), sonst None."""
        if reference in self._by_code:
            return reference
        return self._code_by_name.get(reference)

    def columns_for(self, reference: str) -> Optional[ColumnPair]:
        code = self.resolve(reference)
        return self._by_code.get(code) if code is not None else None


class JobColumnAllocator:
    """
    Verteilt die Jobs einer Anfrage der Reihe nach auf den Spaltenpool der Vorlage.
    Gleiche Job-Liste ergibt immer dieselbe Zuordnung.
    """

    def __init__(self, pool: Sequence[ColumnPair]):
        self.pool: List[ColumnPair] = list(pool)

    def allocate(self, jobs: Sequence[Job]) -> ColumnAssignment:
        if len(jobs) > len(self.pool):
            excess = [job.job_code for job in jobs[len(self.pool):]]
            logger.error(f"{len(jobs)} Jobs, aber nur {len(self.pool)} Spaltenpaare in der Vorlage. Überzählig: {excess}")
            raise ColumnCapacityError(
                f"Zu viele Jobs: {len(jobs)} angefragt, Vorlage bietet {len(self.pool)} Spaltenpaare. "
                f"Nicht zugeordnet: {', '.join(excess)}",
                excess=excess,
            )
        slots = list(zip(jobs, self.pool))
        for job, pair in slots:
            logger.debug(f"Job {job.job_code} ({job.job_name}) -> Spalten {pair.hours}/{pair.name}")
        return ColumnAssignment(slots)
