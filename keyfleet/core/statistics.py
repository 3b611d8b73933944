"""
Fleet-wide progress model.

Every key tried is treated as an independent uniform trial with success
chance ``1 / space``, where ``space = 2 ** bit_length(prefix)``. From the
total ticks reported by all matching jobs we derive:

* the probability that at least one match has been found,
* the ticks needed to reach ``TARGET_PROBABILITY``,
* an ETA from the summed instantaneous speed of running jobs.

Everything here is a pure reduction over snapshot data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from keyfleet.config import TARGET_PROBABILITY
from keyfleet.core.keyspace import keyspace_size, prefix_bit_length
from keyfleet.schemas import Job, JobStatus, StatusSnapshot

SECONDS_PER_DAY = 24 * 3600


@dataclass
class StatusTally:
    """Job counts keyed by the closed set of job statuses."""

    counts: Dict[JobStatus, int] = field(default_factory=lambda: {status: 0 for status in JobStatus})

    def add(self, status: JobStatus) -> None:
        self.counts[status] += 1

    def __getitem__(self, status: JobStatus) -> int:
        return self.counts[status]

    def items(self) -> Iterator[Tuple[JobStatus, int]]:
        return iter(self.counts.items())

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True)
class Eta:
    days: int
    hours: int
    minutes: int
    seconds: int

    def format(self) -> str:
        return f"{self.days}d {pad2(self.hours)}h {pad2(self.minutes)}m {pad2(self.seconds)}s"


@dataclass
class AggregateReport:
    prefix: str
    tally: StatusTally
    total: int
    speed: float
    results: List[Any]
    bit_length: int
    space: int
    probability: float
    target_ticks: float
    delta_ticks: float
    eta_seconds: float
    nodes_polled: int = 0
    nodes_answered: int = 0

    @property
    def eta(self) -> Optional[Eta]:
        """None when no running job makes progress toward the target."""
        if math.isinf(self.eta_seconds):
            return None
        return decompose_eta(self.eta_seconds)


def pad2(value: int) -> str:
    return f"{value:02d}"


def success_probability(total: float, space: int) -> float:
    """P(at least one hit) after ``total`` uniform trials over ``space`` keys."""
    if total <= 0:
        return 0.0
    return -math.expm1(total * math.log1p(-1.0 / space))


def target_ticks(space: int, target: float = TARGET_PROBABILITY) -> float:
    """Trials needed before the hit probability reaches ``target``."""
    if space <= 1:
        raise ValueError("keyspace must hold more than one key")
    return math.log1p(-target) / math.log1p(-1.0 / space)


def remaining_ticks(target: float, total: float) -> float:
    return max(0.0, target - total)


def eta_seconds(delta_ticks: float, speed: float) -> float:
    if delta_ticks <= 0:
        return 0.0
    if speed <= 0:
        return math.inf
    return delta_ticks / speed


def decompose_eta(seconds: float) -> Eta:
    whole = int(math.floor(seconds))
    days, rest = divmod(whole, SECONDS_PER_DAY)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    return Eta(days=days, hours=hours, minutes=minutes, seconds=secs)


def job_speed(job: Job) -> float:
    """Keys per second for a running job, 0 if it has not accrued elapsed time."""
    if job.status != JobStatus.RUNNING or job.elapsed <= 0:
        return 0.0
    return job.stats.ticks * 1000.0 / job.elapsed


def matching_jobs(snapshots: Iterable[StatusSnapshot], prefix: str) -> List[Job]:
    return [
        job
        for snapshot in snapshots
        for job in snapshot.all_jobs()
        if job.config.prefix == prefix
    ]


class StatisticsAggregator:
    def __init__(
        self,
        bit_length: Callable[[str], int] = prefix_bit_length,
        target: float = TARGET_PROBABILITY,
    ) -> None:
        self.bit_length = bit_length
        self.target = target

    def aggregate(self, snapshots: Iterable[StatusSnapshot], prefix: str) -> AggregateReport:
        snapshots = list(snapshots)
        jobs = matching_jobs(snapshots, prefix)

        tally = StatusTally()
        total = 0
        speed = 0.0
        results: List[Any] = []
        for job in jobs:
            tally.add(job.status)
            total += job.stats.ticks
            speed += job_speed(job)
            if job.result is not None:
                results.append(job.result)

        bits = self.bit_length(prefix)
        space = keyspace_size(bits)
        needed = target_ticks(space, self.target)
        delta = remaining_ticks(needed, total)

        return AggregateReport(
            prefix=prefix,
            tally=tally,
            total=total,
            speed=speed,
            results=results,
            bit_length=bits,
            space=space,
            probability=success_probability(total, space),
            target_ticks=needed,
            delta_ticks=delta,
            eta_seconds=eta_seconds(delta, speed),
            nodes_polled=len(snapshots),
            nodes_answered=sum(1 for snapshot in snapshots if snapshot.reachable),
        )
