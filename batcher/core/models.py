"""
Pydantic models for run configuration and exported results.
"""

from __future__ import annotations

from typing import List, Optional, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_TOTAL = 50
DEFAULT_BATCH = 10
DEFAULT_PREFIX = "bgjob"
DEFAULT_COMMAND = ("sleep", "1")
DEFAULT_TICKS = 20


class BatchConfig(BaseModel):
    """Immutable run configuration handed to the scheduler."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(default=DEFAULT_TOTAL, gt=0)
    batch: int = Field(default=DEFAULT_BATCH, gt=0)
    prefix: str = Field(default=DEFAULT_PREFIX, min_length=2)
    command: Tuple[str, ...] = Field(default=DEFAULT_COMMAND, min_length=1)
    ticks: int = Field(default=DEFAULT_TICKS, gt=0)

    @field_validator("command")
    @classmethod
    def command_nonblank(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v[0]:
            raise ValueError("command executable must not be empty")
        return v

    @model_validator(mode="after")
    def check_batch(self) -> "BatchConfig":
        if self.batch > self.total:
            raise ValueError(f"batch must be <= total (batch={self.batch}, total={self.total})")
        return self


class JobRecord(BaseModel):
    id: int
    name: str
    command: List[str]
    outcome: Literal["succeeded", "failed", "invalid"]
    exit_status: int
    created_at: float
    started_at: float
    duration: float
    stdout: str = ""
    stderr: str = ""
    launch_error: Optional[str] = None

    @model_validator(mode="after")
    def check_outcome(self) -> "JobRecord":
        if self.started_at < self.created_at:
            raise ValueError("started_at must be >= created_at")
        if (self.exit_status < 0) != (self.launch_error is not None):
            raise ValueError("exit_status < 0 must coincide with a launch error")
        expected = "invalid" if self.exit_status < 0 else ("succeeded" if self.exit_status == 0 else "failed")
        if self.outcome != expected:
            raise ValueError(f"outcome '{self.outcome}' does not match exit_status {self.exit_status}")
        return self


class RunSummary(BaseModel):
    total: int
    completed: int
    succeeded: int
    failed: int
    invalid: int
    completion_pct: float
    success_pct: float
    failure_pct: float
    invalid_pct: float
    active_time: float
    completion_rate: float
    # duration statistics are unset until at least one job completed
    aggregate_run_time: Optional[float] = None
    average_run_time: Optional[float] = None
    minimum_run_time: Optional[float] = None
    maximum_run_time: Optional[float] = None
    variance: Optional[float] = None  # seconds^2
    stddev: Optional[float] = None
    root_mean_square: Optional[float] = None

    @model_validator(mode="after")
    def check_counts(self) -> "RunSummary":
        if self.succeeded + self.failed + self.invalid != self.completed:
            raise ValueError("succeeded + failed + invalid must equal completed")
        return self
