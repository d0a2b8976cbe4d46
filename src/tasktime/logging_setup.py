# src/tasktime/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Make interactive console usable:
    - tracking events (start/stop, clock skew, failed writes) always reach the console
    - storage and registry bookkeeping only at WARNING+ (they log every read/write)
    - third-party loggers and captured warnings only at ERROR+

    Everything still goes to the log file unfiltered.
    """

    QUIET_PREFIXES = ("tasktime.tasks.", "tasktime.tracking.registry")

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if not name.startswith("tasktime."):
            return record.levelno >= logging.ERROR

        if name.startswith(self.QUIET_PREFIXES):
            return record.levelno >= logging.WARNING

        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasktime",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "tasktime.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
