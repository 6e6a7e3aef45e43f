"""
Job: one external command execution and its captured outcome.

A job runs its command as a child process, capturing stdout and stderr into
separate buffers, and classifies the result:

- the process could not be launched -> INVALID (exit_status -1, launch_error set)
- the process exited non-zero       -> FAILED (exit_status = code)
- the process exited zero           -> SUCCEEDED
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .models import JobRecord

logger = logging.getLogger(__name__)

LAUNCH_ERROR_STATUS = -1


class JobOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INVALID = "invalid"


def job_name(prefix: str, job_id: int) -> str:
    return f"{prefix}_{job_id:06d}"


def _classify(exit_status: int) -> JobOutcome:
    if exit_status == 0:
        return JobOutcome.SUCCEEDED
    if exit_status > 0:
        return JobOutcome.FAILED
    return JobOutcome.INVALID


@dataclass
class Job:
    id: int
    name: str
    command: List[str]
    created_at: Optional[float] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    duration: Optional[float] = None
    stdout: str = ""
    stderr: str = ""
    exit_status: Optional[int] = None
    launch_error: Optional[BaseException] = None
    outcome: Optional[JobOutcome] = None
    _t0: Optional[float] = field(default=None, repr=False, compare=False)

    @classmethod
    def create(cls, job_id: int, prefix: str, command: Sequence[str]) -> "Job":
        if not command:
            raise ValueError("job command must not be empty")
        return cls(id=job_id, name=job_name(prefix, job_id), command=list(command))

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def mark_ready(self) -> None:
        self.created_at = time.time()

    def mark_started(self) -> None:
        now = time.time()
        if self.created_at is None:
            self.created_at = now
        self.started_at = max(now, self.created_at)

    def mark_finished(self) -> None:
        self.finished_at = time.time()
        if self._t0 is not None:
            self.duration = time.perf_counter() - self._t0

    def run(self) -> JobOutcome:
        """Run the command to completion and record its outcome.

        Blocks until the child exits or fails to launch. Never raises for a
        command failure; raises RuntimeError if the job already ran.
        """
        if self.done:
            raise RuntimeError(f"job {self.name} already ran ({self.outcome.value})")
        if self.started_at is None:
            self.mark_started()
        self._t0 = time.perf_counter()
        try:
            res = subprocess.run(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except (OSError, ValueError, TypeError, IndexError) as ex:
            self.mark_finished()
            return self.fail_launch(ex)
        self.mark_finished()
        self.stdout = res.stdout or ""
        self.stderr = res.stderr or ""
        rc = res.returncode
        if rc < 0:
            # killed by signal; report 128+N like a shell
            logger.debug(f"{self.name} terminated by signal {-rc}")
            rc = 128 - rc
        self.exit_status = rc
        self.outcome = _classify(rc)
        return self.outcome

    def fail_launch(self, cause: BaseException) -> JobOutcome:
        """Record that the command could not be run at all."""
        if self.finished_at is None:
            self.mark_finished()
        if self.duration is None:
            self.duration = 0.0
        self.launch_error = cause
        self.exit_status = LAUNCH_ERROR_STATUS
        self.outcome = JobOutcome.INVALID
        return self.outcome

    def to_record(self) -> JobRecord:
        if not self.done:
            raise RuntimeError(f"job {self.name} has not completed")
        return JobRecord(
            id=self.id,
            name=self.name,
            command=list(self.command),
            outcome=self.outcome.value,
            exit_status=self.exit_status,
            created_at=self.created_at,
            started_at=self.started_at,
            duration=self.duration,
            stdout=self.stdout,
            stderr=self.stderr,
            launch_error=str(self.launch_error) if self.launch_error is not None else None,
        )
