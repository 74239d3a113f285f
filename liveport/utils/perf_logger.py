"""
Phase timing for startup work.

Timings go to the ``liveport.perf`` category. Slow phases escalate to
WARNING or ERROR; everything else is DEBUG. Not meant for per-event work.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from .trace_context import get_cycle_id

perf_logger = logging.getLogger("liveport.perf")


@asynccontextmanager
async def log_timing_async(
    operation: str,
    warn_threshold_ms: float = 500.0,
    error_threshold_ms: float = 2000.0,
) -> AsyncIterator[Dict[str, Any]]:
    """
    Time an async block and log how long it took.

    Yields:
        Dict whose contents are attached to the timing record.
    """
    context: Dict[str, Any] = {}
    started = time.perf_counter()
    try:
        yield context
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        data = {"operation": operation, "duration_ms": round(elapsed_ms, 2), **context}
        if elapsed_ms >= error_threshold_ms:
            level = logging.ERROR
        elif elapsed_ms >= warn_threshold_ms:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        perf_logger.log(
            level,
            f"[{get_cycle_id()}] {operation} took {elapsed_ms:.1f}ms",
            extra={"data": data},
        )
