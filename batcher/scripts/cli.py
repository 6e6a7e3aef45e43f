#!/usr/bin/env python3
"""
batcher: run a command many times with bounded parallelism

Usage:
  batcher [--total N] [--batch C] [--prefix P] [--config FILE] [command ...]

Every job runs the same command (default: sleep 1). Per-job reports are
printed as jobs complete, followed by a summary of the run statistics.
"""
from __future__ import annotations

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from batcher.core.configuration import ConfigurationError, build_config
from batcher.core.models import DEFAULT_BATCH, DEFAULT_COMMAND, DEFAULT_PREFIX, DEFAULT_TICKS, DEFAULT_TOTAL
from batcher.core.report import default_progress, print_job, print_summary, write_summary_json
from batcher.core.scheduler import BatchScheduler
from batcher.utils.logging_config import setup_logging

logger = logging.getLogger("batcher")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="batcher",
        description="Run a command as a batch of background jobs with bounded parallelism",
    )
    parser.add_argument("--total", type=int, default=None, help=f"The total number of jobs to run (default: {DEFAULT_TOTAL})")
    parser.add_argument("--batch", type=int, default=None, help=f"Up to this many jobs run at the same time (default: {DEFAULT_BATCH})")
    parser.add_argument("--prefix", default=None, help=f"Prefix used when generating job names (default: {DEFAULT_PREFIX})")
    parser.add_argument("--ticks", type=int, default=None, help=f"Number of progress reports over the run (default: {DEFAULT_TICKS})")
    parser.add_argument("--config", default=None, help="YAML file with total/batch/prefix/command/ticks")
    parser.add_argument("--detailed", action="store_true", help="Show stdout/stderr of every job, not only failed ones")
    parser.add_argument("--no-progress", dest="progress", action="store_false", default=True, help="Disable progress lines")
    parser.add_argument("--summary-json", default=None, help="Write config, summary and job records to this JSON file")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO")
    parser.add_argument("--log-file", default=None, help="Log file path (default: batcher_data/batcher.log)")
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help=f"Command each job runs (default: {' '.join(DEFAULT_COMMAND)})",
    )
    return parser


def run_batch(args: argparse.Namespace) -> int:
    command: List[str] = list(args.command or [])
    if command and command[0] == "--":
        command = command[1:]
    cfg = build_config(
        args.config,
        total=args.total,
        batch=args.batch,
        prefix=args.prefix,
        ticks=args.ticks,
        command=command or None,
    )

    sched = BatchScheduler(
        cfg,
        progress=default_progress if args.progress else None,
        on_complete=lambda job: print_job(job, detailed=args.detailed, run_start=sched.run_start),
    )
    stats = sched.run()
    print_summary(stats)
    if args.summary_json:
        out = write_summary_json(Path(args.summary_json), cfg, stats, sched.jobs)
        logger.info(f"summary written to {out}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)
    try:
        return run_batch(args)
    except ConfigurationError as e:
        logger.error(f"invalid configuration: {e}")
        parser.print_usage(sys.stderr)
        print(f"batcher: error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
