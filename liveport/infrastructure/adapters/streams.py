"""Queue-backed event stream shared by the brokerage adapters."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, List

from ...domain.exceptions import StreamClosedError
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

_CLOSED = object()


class QueuedEventStream:
    """
    Event stream fed by background reader tasks through an asyncio.Queue.

    ``get_event`` returns events in push order, raises pushed exception
    instances, and raises StreamClosedError once the stream is closed and
    drained. Closing cancels the readers; otherwise the stream ends when
    the last reader finishes.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._readers: List[asyncio.Task] = []
        self._live_readers = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, item: Any) -> None:
        """Deliver an event, or an exception instance for get_event to raise."""
        if self._closed:
            raise StreamClosedError(f"{self.name} stream is closed")
        self._queue.put_nowait(item)

    def end(self) -> None:
        """Mark end of data; called automatically when the last reader finishes."""
        if not self._closed:
            self._queue.put_nowait(_CLOSED)

    async def get_event(self) -> Any:
        if self._closed and self._queue.empty():
            raise StreamClosedError(f"{self.name} stream is closed")
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            raise StreamClosedError(f"{self.name} stream is closed")
        if isinstance(item, BaseException):
            raise item
        return item

    def start_reader(self, coro: Coroutine[Any, Any, None]) -> None:
        """
        Run ``coro`` as a reader task.

        The stream ends when its last reader returns or fails; a reader
        that stops early leaves the others running.
        """
        if self._closed:
            coro.close()
            return
        self._live_readers += 1
        self._readers.append(asyncio.create_task(self._run_reader(coro)))

    async def _run_reader(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except StreamClosedError:
            pass
        except Exception as e:
            logger.debug(f"{self.name} reader stopped: {e!r}")
        finally:
            self._live_readers -= 1
            if self._live_readers == 0:
                self.end()

    @property
    def has_readers(self) -> bool:
        return bool(self._readers)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for task in self._readers:
            task.cancel()
        if self._readers:
            await asyncio.gather(*self._readers, return_exceptions=True)
        self._readers.clear()
        self._queue.put_nowait(_CLOSED)
        await self._close_source()
        logger.debug(f"{self.name} stream closed")

    async def _close_source(self) -> None:
        """Release the underlying connection; override in adapters that hold one."""
