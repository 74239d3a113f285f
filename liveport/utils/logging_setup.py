"""
Category logging for liveport.

Modules log through ``get_logger(__name__)``, which maps the module path
to one of four category loggers:

    system   startup, shutdown, bootstrap, event loop, TUI
    adapter  brokerage sessions and streams
    data     portfolio model updates
    perf     phase timings

Each category writes JSON lines to its own file under
``<log_dir>/<date>/liveport_<profile>_<suffix>_<date>_<run>.log``. File
writes happen on a QueueListener thread so the event loop never blocks
on disk. A console handler is attached until the dashboard owns the
terminal.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime
from pathlib import Path
from queue import SimpleQueue
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from .trace_context import get_cycle_id

ROOT_LOGGER_NAME = "liveport"

# Category -> file name suffix
CATEGORY_SUFFIXES = {
    "system": "sys",
    "adapter": "adp",
    "data": "dat",
    "perf": "prf",
}

# First matching prefix wins
_MODULE_CATEGORIES = (
    ("liveport.infrastructure.adapters", "adapter"),
    ("liveport.models", "data"),
    ("liveport.domain", "data"),
)

_listeners: List[logging.handlers.QueueListener] = []
_run_number: Optional[int] = None
_timezone: Optional[ZoneInfo] = None


def get_category_for_module(module_name: str) -> str:
    """Category for a module path; anything unrouted is "system"."""
    for prefix, category in _MODULE_CATEGORIES:
        if module_name.startswith(prefix):
            return category
    return "system"


def get_logger(module_name: str) -> logging.Logger:
    """Category logger for ``module_name`` (typically ``__name__``)."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{get_category_for_module(module_name)}")


def set_log_timezone(tz: Optional[str] = None) -> None:
    """Timestamp log records in ``tz`` (IANA name); None or "local" means system time."""
    global _timezone
    _timezone = None if not tz or tz.lower() == "local" else ZoneInfo(tz)


class CycleIdFilter(logging.Filter):
    """Copy the caller's cycle ID onto the record before it crosses threads."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cycle"):
            record.cycle = get_cycle_id()
        return True


def _cycle_of(record: logging.LogRecord) -> str:
    return getattr(record, "cycle", None) or get_cycle_id()


class JSONFormatter(logging.Formatter):
    """One JSON object per line: ts, level, cat, cycle, msg and optional data/exception."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, _timezone).isoformat(),
            "level": record.levelname,
            "cat": record.name.rpartition(".")[2],
            "cycle": _cycle_of(record),
            "msg": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["exception"] = record.exc_text
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``[LEVEL  ] [cycle] message``, colored when stderr is a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        label = f"[{record.levelname:7}]"
        if self.use_colors:
            label = f"{self.COLORS.get(record.levelname, '')}{label}{self.RESET}"
        return f"{label} [{_cycle_of(record)}] {record.getMessage()}"


def _next_run_number(day_dir: Path, profile: str, date_str: str) -> int:
    pattern = re.compile(
        rf"^liveport_{re.escape(profile)}_[a-z]{{3}}_{re.escape(date_str)}_(\d+)\.log$"
    )
    runs = [
        int(match.group(1))
        for match in (pattern.match(p.name) for p in day_dir.glob("*.log"))
        if match
    ]
    return max(runs, default=0) + 1


def reset_session_run_number() -> None:
    """Pick a fresh run number on the next setup (tests)."""
    global _run_number
    _run_number = None


def _category_loggers() -> Dict[str, logging.Logger]:
    return {
        category: logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        for category in CATEGORY_SUFFIXES
    }


def setup_category_logging(
    profile: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Route every category to its own JSON log file.

    Calling it again replaces the previous handlers. The run number is
    chosen once per process so all four files of a session share it.

    Args:
        profile: "live" or "demo"; part of every file name.
        log_dir: Base directory; a per-date subdirectory is created.
        level: Minimum level for the files.
        console: Also print WARNING and above (everything if verbose) to stderr.
        verbose: Force DEBUG everywhere.

    Returns:
        Category name -> logger.
    """
    global _run_number

    shutdown_logging()
    loggers = _category_loggers()
    for logger in loggers.values():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

    date_str = datetime.now(_timezone).strftime("%Y-%m-%d")
    day_dir = Path(log_dir) / date_str
    day_dir.mkdir(parents=True, exist_ok=True)
    if _run_number is None:
        _run_number = _next_run_number(day_dir, profile, date_str)

    file_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    for category, logger in loggers.items():
        logger.setLevel(file_level)
        logger.propagate = False

        path = day_dir / f"liveport_{profile}_{CATEGORY_SUFFIXES[category]}_{date_str}_{_run_number}.log"
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())

        records: SimpleQueue = SimpleQueue()
        queue_handler = logging.handlers.QueueHandler(records)
        queue_handler.addFilter(CycleIdFilter())
        logger.addHandler(queue_handler)

        listener = logging.handlers.QueueListener(records, file_handler)
        listener.start()
        _listeners.append(listener)

        if console:
            stream_handler = logging.StreamHandler(sys.stderr)
            stream_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            logger.addHandler(stream_handler)

    return loggers


def disable_console_logging() -> None:
    """Detach the stderr handlers; file logging is unaffected."""
    for logger in _category_loggers().values():
        for handler in logger.handlers[:]:
            if type(handler) is logging.StreamHandler:
                handler.flush()
                logger.removeHandler(handler)


def flush_all_loggers() -> None:
    for logger in _category_loggers().values():
        for handler in logger.handlers:
            handler.flush()


def shutdown_logging() -> None:
    """Drain the queues to disk and stop the listener threads."""
    while _listeners:
        listener = _listeners.pop()
        listener.stop()
        for handler in listener.handlers:
            handler.close()
