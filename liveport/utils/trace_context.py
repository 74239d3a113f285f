"""
Cycle IDs: one short hex ID per dispatched event.

Every log line written while the event loop handles an event carries the
same ID, so a quote, the state change it caused and the frame it produced
can be found together in the category files. The ID lives in a
contextvar and is therefore per-task.
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_CYCLE = "------"

_current: ContextVar[Optional[str]] = ContextVar("liveport_cycle", default=None)


def get_cycle_id() -> str:
    """ID of the event being handled, or NO_CYCLE outside the event loop."""
    return _current.get() or NO_CYCLE


@contextmanager
def new_cycle() -> Iterator[str]:
    """Handle one event under a fresh 6-character ID."""
    token = _current.set(secrets.token_hex(3))
    try:
        yield _current.get()
    finally:
        _current.reset(token)
