"""
Run statistics: completion counters and job duration distribution.

RunStats is fed each completed job exactly once by the scheduler's consumer
loop and is not synchronized; only one thread may call update().

All durations are in seconds. Duration statistics are computed on demand from
the stored samples and return None until at least one job has completed.
variance() is in seconds squared, not a duration.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional

import numpy as np

from .job import Job, JobOutcome
from .models import RunSummary

logger = logging.getLogger(__name__)


def percentage(fraction: float, total: float) -> float:
    if not total:
        return 0.0
    return round(fraction / total * 100.0, 3)


class RunStats:
    def __init__(self, total: int):
        self.total = int(total)
        self.completed = 0
        self.succeeded = 0
        self.failed = 0
        self.invalid = 0
        self.active_time = 0.0
        self._durations: List[float] = []
        self._started: Optional[float] = None
        self._finished: Optional[float] = None

    def start(self) -> None:
        self._started = time.perf_counter()
        self._finished = None
        self.active_time = 0.0

    def finish(self) -> None:
        if self._started is None:
            raise RuntimeError("finish() called before start()")
        self._finished = time.perf_counter()
        self.active_time = self._finished - self._started
        logger.debug(f"Stats finalized: completed={self.completed}/{self.total} active_time={self.active_time:.6f}s")

    @property
    def finished(self) -> bool:
        return self._finished is not None

    def update(self, job: Job) -> None:
        if job.outcome is None:
            raise ValueError(f"job {job.name} has no outcome yet")
        self.completed += 1
        if job.outcome is JobOutcome.SUCCEEDED:
            self.succeeded += 1
        elif job.outcome is JobOutcome.FAILED:
            self.failed += 1
        else:
            self.invalid += 1
        self._durations.append(float(job.duration or 0.0))

    @property
    def durations(self) -> List[float]:
        return list(self._durations)

    # ----- rates -----

    def completion_percentage(self) -> float:
        return percentage(self.completed, self.total)

    def success_percentage(self) -> float:
        return percentage(self.succeeded, self.total)

    def failure_percentage(self) -> float:
        return percentage(self.failed, self.total)

    def invalid_percentage(self) -> float:
        return percentage(self.invalid, self.total)

    def completion_rate(self) -> float:
        """Completed jobs per second of active time."""
        if not self.completed or self.active_time <= 0:
            return 0.0
        return self.completed / self.active_time

    # ----- duration distribution -----

    def _samples(self) -> Optional[np.ndarray]:
        if not self._durations:
            return None
        return np.asarray(self._durations, dtype=float)

    def aggregate_run_time(self) -> Optional[float]:
        d = self._samples()
        return None if d is None else float(d.sum())

    def average_run_time(self) -> Optional[float]:
        d = self._samples()
        return None if d is None else float(d.mean())

    def minimum_run_time(self) -> Optional[float]:
        d = self._samples()
        return None if d is None else float(d.min())

    def maximum_run_time(self) -> Optional[float]:
        d = self._samples()
        return None if d is None else float(d.max())

    def variance(self) -> Optional[float]:
        """Population variance of job durations, in seconds squared."""
        d = self._samples()
        return None if d is None else float(np.var(d))

    def stddev(self) -> Optional[float]:
        var = self.variance()
        return None if var is None else float(np.sqrt(var))

    def root_mean_square(self) -> Optional[float]:
        d = self._samples()
        return None if d is None else float(np.sqrt(np.mean(np.square(d))))

    def summary(self) -> RunSummary:
        return RunSummary(
            total=self.total,
            completed=self.completed,
            succeeded=self.succeeded,
            failed=self.failed,
            invalid=self.invalid,
            completion_pct=self.completion_percentage(),
            success_pct=self.success_percentage(),
            failure_pct=self.failure_percentage(),
            invalid_pct=self.invalid_percentage(),
            active_time=self.active_time,
            completion_rate=self.completion_rate(),
            aggregate_run_time=self.aggregate_run_time(),
            average_run_time=self.average_run_time(),
            minimum_run_time=self.minimum_run_time(),
            maximum_run_time=self.maximum_run_time(),
            variance=self.variance(),
            stddev=self.stddev(),
            root_mean_square=self.root_mean_square(),
        )
