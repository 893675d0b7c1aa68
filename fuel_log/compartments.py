from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

from .domain import DEFAULT_COMPARTMENT_COUNT, Job, Trailer, WorkLog
from .exceptions import CompartmentUnavailable, TooManyDrops


def trailer_for_log(log: WorkLog, trailers: Iterable[Trailer]) -> Optional[Trailer]:
    """The log's selected trailer, falling back to the first one on file."""
    trailers = list(trailers)
    for trailer in trailers:
        if trailer.id == log.trailer_id:
            return trailer
    return trailers[0] if trailers else None


def compartment_count_for(log: WorkLog, trailers: Iterable[Trailer]) -> int:
    trailer = trailer_for_log(log, trailers)
    return trailer.compartment_count if trailer else DEFAULT_COMPARTMENT_COUNT


class CompartmentAllocator:
    """
    Bookkeeping for the compartments of one trailer.

    Compartments are numbered ``1..compartment_count`` and a compartment can
    hold the cargo of at most one drop within a job.
    """

    def __init__(self, compartment_count: int):
        self.compartment_count = compartment_count

    @classmethod
    def for_log(cls, log: WorkLog, trailers: Iterable[Trailer]) -> "CompartmentAllocator":
        return cls(compartment_count_for(log, trailers))

    @property
    def compartments(self) -> range:
        return range(1, self.compartment_count + 1)

    def used_compartments(self, job: Job) -> Set[int]:
        return {cargo.compartment for drop in job.drops for cargo in drop.cargos}

    def remaining_count(self, job: Job) -> int:
        return self.compartment_count - len(self.used_compartments(job))

    def can_add_drop(self, job: Job) -> bool:
        return len(job.drops) < self.compartment_count and self.remaining_count(job) > 0

    def next_free_compartment(self, job: Job) -> Optional[int]:
        used = self.used_compartments(job)
        for compartment in self.compartments:
            if compartment not in used:
                return compartment
        return None

    def is_compartment_selectable(
        self, job: Job, compartment: int, excluding_cargo_id: Optional[str] = None
    ) -> bool:
        for drop in job.drops:
            for cargo in drop.cargos:
                if cargo.compartment == compartment and cargo.id != excluding_cargo_id:
                    return False
        return True

    def options(self, job: Job, cargo_id: Optional[str] = None) -> List[Tuple[int, bool]]:
        return [
            (compartment, self.is_compartment_selectable(job, compartment, cargo_id))
            for compartment in self.compartments
        ]

    def compartment_totals(self, log: WorkLog) -> List[float]:
        """Liters loaded per compartment across every job of the log."""
        totals = [0] * self.compartment_count
        for job in log.jobs:
            for drop in job.drops:
                for cargo in drop.cargos:
                    if 1 <= cargo.compartment <= self.compartment_count:
                        totals[cargo.compartment - 1] += cargo.liters
        return totals

    def check_job(self, job: Job) -> None:
        """Raise if the job's cargo cannot physically sit in this trailer."""
        if len(job.drops) > self.compartment_count:
            raise TooManyDrops(len(job.drops), self.compartment_count)
        seen = set()
        for drop in job.drops:
            for cargo in drop.cargos:
                if cargo.compartment not in self.compartments:
                    raise CompartmentUnavailable(cargo.compartment, f"outside 1..{self.compartment_count}")
                if cargo.compartment in seen:
                    raise CompartmentUnavailable(cargo.compartment, "already used in this job")
                seen.add(cargo.compartment)
