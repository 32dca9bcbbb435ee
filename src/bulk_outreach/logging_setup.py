# src/bulk_outreach/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "outreach.log"

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx logs every request at INFO, i.e. one line per poll tick.
_QUIET_LOGGERS = ("httpx", "httpcore")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console gets our own logs, minus the per-tick poller DEBUG lines.
    Everything else (captured warnings, httpx, asyncio) only from ERROR up.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith("bulk_outreach."):
            return record.levelno >= logging.ERROR
        if record.name == "bulk_outreach.tasks.task_poller":
            return record.levelno >= logging.INFO
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/outreach",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to a filtered stderr handler and to <log_dir>/outreach.log.

    Replaces whatever handlers the root logger had, so the CLI can call it
    before the session is built and tests can call it repeatedly. Returns the
    log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # Every poll tick and every transient error lands here.
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
