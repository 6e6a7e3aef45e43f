"""
Human-readable reporting for batch runs (Rich-based).

- per-job report printed as each job completes
- progress line fired by the scheduler at tick boundaries
- end-of-run summary table
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .job import Job, JobOutcome
from .models import BatchConfig
from .stats import RunStats

if TYPE_CHECKING:
    from .scheduler import BatchScheduler

_CONSOLE: Optional[Console] = None


def get_console() -> Console:
    global _CONSOLE
    if _CONSOLE is None:
        _CONSOLE = Console(highlight=False, soft_wrap=True)
    return _CONSOLE


def set_console(console: Optional[Console]) -> None:
    """Redirect report output (None restores the default stdout console)."""
    global _CONSOLE
    _CONSOLE = console


def _banner(job: Job, text: str, style: str = "bold") -> Text:
    return Text(f"[{job.name} job {text}]", style=style)


def _stream_block(job: Job, label: str, content: str) -> List[Any]:
    if not content:
        return [_banner(job, f"{label} empty", style="dim")]
    return [_banner(job, label), Text(content.rstrip("\n"))]


def render_job(job: Job, *, detailed: bool = False, run_start: Optional[float] = None) -> Group:
    """Build the report for one completed job.

    Invalid jobs show the command and the launch error. Output streams are
    shown for failed jobs, or for every job when ``detailed`` is set.
    """
    parts: List[Any] = []
    if job.outcome is JobOutcome.INVALID:
        parts.append(_banner(job, "command invalid", style="bold red"))
        parts.append(Text(f"Command: {' '.join(job.command)}"))
        if job.launch_error is not None:
            parts.append(Text(f"Error: {job.launch_error}"))
        return Group(*parts)

    if detailed or job.outcome is JobOutcome.FAILED:
        parts.extend(_stream_block(job, "stdout", job.stdout))
        parts.extend(_stream_block(job, "stderr", job.stderr))

    wait = (job.started_at or 0.0) - (job.created_at or 0.0)
    times = f"{wait:+13.6f}s ({job.duration or 0.0:13.6f}s)"
    if run_start is not None and job.created_at is not None:
        times = f"{job.created_at - run_start:+13.6f}s -> " + times
    style = "green" if job.outcome is JobOutcome.SUCCEEDED else "bold red"
    parts.append(_banner(job, f"exit status: {job.exit_status:3d}, times: {times}", style=style))
    return Group(*parts)


def print_job(job: Job, *, detailed: bool = False, run_start: Optional[float] = None,
              console: Optional[Console] = None) -> None:
    (console or get_console()).print(render_job(job, detailed=detailed, run_start=run_start))


def progress_line(stats: RunStats) -> str:
    return (
        f"Progress: complete={stats.completed:6d}({stats.completion_percentage():6.2f}%) "
        f"fail={stats.failed:6d}({stats.failure_percentage():6.2f}%) "
        f"success={stats.succeeded:6d}({stats.success_percentage():6.2f}%) "
        f"invalid={stats.invalid:6d}({stats.invalid_percentage():6.2f}%)"
    )


def default_progress(scheduler: "BatchScheduler", job: Job) -> None:
    get_console().print(Text(progress_line(scheduler.stats), style="cyan"))


def _fmt_seconds(v: Optional[float], unit: str = "s") -> str:
    return "n/a" if v is None else f"{v:.6f}{unit}"


def build_summary_table(stats: RunStats) -> Table:
    table = Table(title="Batch summary", show_lines=False)
    table.add_column("metric", style="bold")
    table.add_column("value", justify="right")
    table.add_column("pct", justify="right")
    for label, count, pct in (
        ("total", stats.total, None),
        ("completed", stats.completed, stats.completion_percentage()),
        ("succeeded", stats.succeeded, stats.success_percentage()),
        ("failed", stats.failed, stats.failure_percentage()),
        ("invalid", stats.invalid, stats.invalid_percentage()),
    ):
        table.add_row(label, str(count), "" if pct is None else f"{pct:.3f}%")
    table.add_row("active time", _fmt_seconds(stats.active_time), "")
    table.add_row("completion rate", f"{stats.completion_rate():.3f} job/s", "")
    table.add_row("aggregate run time", _fmt_seconds(stats.aggregate_run_time()), "")
    table.add_row("average run time", _fmt_seconds(stats.average_run_time()), "")
    table.add_row("minimum run time", _fmt_seconds(stats.minimum_run_time()), "")
    table.add_row("maximum run time", _fmt_seconds(stats.maximum_run_time()), "")
    # variance is in s^2, not a duration
    table.add_row("variance", _fmt_seconds(stats.variance(), unit="s^2"), "")
    table.add_row("std deviation", _fmt_seconds(stats.stddev()), "")
    table.add_row("root mean square", _fmt_seconds(stats.root_mean_square()), "")
    return table


def print_summary(stats: RunStats, console: Optional[Console] = None) -> None:
    (console or get_console()).print(build_summary_table(stats))


def render_summary_text(stats: RunStats, width: int = 100) -> str:
    """One-shot rendering of the summary table to plain text."""
    console = Console(record=True, width=width, file=io.StringIO())
    console.print(build_summary_table(stats))
    return console.export_text(clear=False)



def write_summary_json(path: Path, config: BatchConfig, stats: RunStats, jobs: List[Job]) -> Path:
    """Persist config, summary and finished job records as JSON (atomic replace)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "config": config.model_dump(),
        "summary": stats.summary().model_dump(),
        "jobs": [j.to_record().model_dump() for j in jobs if j.done],
    }
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2))
    tmp.replace(p)
    return p
