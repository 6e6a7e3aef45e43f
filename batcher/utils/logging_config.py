"""
Logging configuration for batcher.

Run logs go to a file; only warnings and errors reach stderr so the per-job
reports on stdout stay readable. Set BATCHER_LOG_FSYNC=1 to fsync the log
after every record (useful when tailing a long batch).
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_PATH = Path("batcher_data") / "batcher.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"


class _SyncedFileHandler(logging.FileHandler):
    """File handler that optionally fsyncs on every flush."""

    def __init__(self, filename, *, fsync: bool = False):
        super().__init__(filename, encoding="utf-8")
        self.fsync = fsync

    def flush(self):
        super().flush()
        if self.fsync and self.stream:
            try:
                os.fsync(self.stream.fileno())
            except OSError:
                pass


def _fsync_requested() -> bool:
    return os.environ.get("BATCHER_LOG_FSYNC", "").lower() in ("1", "true", "yes")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    console_level: Optional[str] = None,
) -> logging.Logger:
    """
    Route batcher logs to a file and warnings to stderr.

    Args:
        level: Level of the root logger and the file handler
        log_file: Log file path (default: batcher_data/batcher.log)
        format_string: Custom format string
        console_level: Level of the stderr handler (default: WARNING)

    Returns:
        The "batcher" logger
    """
    fmt = logging.Formatter(format_string or LOG_FORMAT)
    log_path = LOG_PATH if log_file is None else Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level.upper())
    for h in list(root.handlers):
        root.removeHandler(h)

    fh = _SyncedFileHandler(log_path, fsync=_fsync_requested())
    fh.setFormatter(fmt)
    fh.setLevel(level.upper())
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel((console_level or "WARNING").upper())
    ch.setFormatter(fmt)
    root.addHandler(ch)

    return logging.getLogger("batcher")
