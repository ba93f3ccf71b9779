"""
Process-wide logging configuration.
"""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def daily_log_path(log_dir: str, day: Optional[date] = None) -> Path:
    """Log file for the given day, e.g. ``logs/sync-2024-05-01.log``."""
    day = day or date.today()
    return Path(log_dir).expanduser() / f"sync-{day.isoformat()}.log"


class DailyFileHandler(logging.FileHandler):
    """File handler that switches to ``sync-<today>.log`` when the date changes."""

    def __init__(self, log_dir: str, encoding: str = "utf-8"):
        self.log_dir = log_dir
        self.day = date.today()
        path = daily_log_path(log_dir, self.day)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, encoding=encoding)

    @property
    def current_path(self) -> Path:
        return Path(self.baseFilename)

    def emit(self, record: logging.LogRecord) -> None:
        today = date.today()
        if today != self.day:
            # handle() already holds the handler lock here
            if self.stream is not None:
                self.stream.close()
                self.stream = None
            self.day = today
            path = daily_log_path(self.log_dir, today)
            path.parent.mkdir(parents=True, exist_ok=True)
            self.baseFilename = os.path.abspath(path)
        super().emit(record)


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> Optional[Path]:
    """Configure the root logger with a console handler and an optional daily file.

    Returns today's log file path when file logging is enabled.
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)

    # Clear existing handlers to avoid duplicates across restarts/reloads.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(fmt)
    root.addHandler(console)

    logfile = None
    if log_dir:
        file_handler = DailyFileHandler(log_dir)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)
        logfile = file_handler.current_path

    # Route uvicorn logs into the same root handlers/file.
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.setLevel(log_level)
        logger.propagate = True

    root.debug("logging initialized (level=%s, file=%s)", logging.getLevelName(log_level), logfile)
    return logfile
