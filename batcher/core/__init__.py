"""
Core modules: job execution, bounded-concurrency scheduling, statistics.
"""

from .models import BatchConfig, JobRecord, RunSummary
from .configuration import ConfigurationError, build_config, load_config_file
from .job import Job, JobOutcome
from .stats import RunStats
from .scheduler import BatchScheduler

__all__ = [
    "BatchConfig",
    "JobRecord",
    "RunSummary",
    "ConfigurationError",
    "build_config",
    "load_config_file",
    "Job",
    "JobOutcome",
    "RunStats",
    "BatchScheduler",
]
