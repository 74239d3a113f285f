"""Logging, cycle tracing and timing helpers."""

from .logging_setup import (
    disable_console_logging,
    flush_all_loggers,
    get_logger,
    set_log_timezone,
    setup_category_logging,
    shutdown_logging,
)
from .perf_logger import log_timing_async
from .trace_context import get_cycle_id, new_cycle

__all__ = [
    "disable_console_logging",
    "flush_all_loggers",
    "get_logger",
    "set_log_timezone",
    "setup_category_logging",
    "shutdown_logging",
    "log_timing_async",
    "get_cycle_id",
    "new_cycle",
]
