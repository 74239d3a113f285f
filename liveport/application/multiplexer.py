"""
Event multiplexer: one loop that owns the portfolio and the selection.

Quote events, account events and key presses are merged into a single
bounded asyncio.Queue. The loop takes one event at a time, applies it to
the Portfolio or the Navigation, then renders one frame. Nothing else
mutates dashboard state, so no locks guard it.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from ..domain.events.domain_events import (
    AccountMessage,
    BalanceEvent,
    DomainEvent,
    GreeksPayload,
    InputClosed,
    InputError,
    KeyPress,
    MarketEvent,
    QuotePayload,
)
from ..domain.exceptions import MarketDataError, RenderError, StreamClosedError
from ..domain.interfaces.brokerage import AccountStream, QuoteSubscription
from ..models.portfolio import Portfolio
from ..tui.viewmodels.navigation import Navigation
from ..utils.logging_setup import get_logger
from ..utils.trace_context import new_cycle

logger = get_logger(__name__)

KEY_QUIT = "q"
KEY_DOWN = "down"
KEY_UP = "up"
KEY_TOGGLE = "space"


class EventMultiplexer:
    """
    Single-consumer event loop for the dashboard.

    Features:
    - Pump tasks forwarding the quote and account streams into the queue
    - Non-blocking, thread-safe submit for keyboard events
    - Bounded queue: events arriving while it is full are dropped and counted
    - One render per dequeued event, each inside its own trace cycle
    """

    def __init__(
        self,
        portfolio: Portfolio,
        navigation: Navigation,
        render: Callable[[], Any],
        quote_stream: Optional[QuoteSubscription] = None,
        account_stream: Optional[AccountStream] = None,
        queue_size: int = 10_000,
        error_backoff_sec: float = 0.1,
    ) -> None:
        """
        Args:
            portfolio: State updated by market and balance events.
            navigation: State updated by key presses.
            render: Paints one frame; exceptions end the loop as RenderError.
            quote_stream: Market-data subscription to pump, if any.
            account_stream: Account stream to pump, if any.
            queue_size: Maximum buffered events before dropping.
            error_backoff_sec: Pause after a stream error before reading again.
        """
        self.portfolio = portfolio
        self.navigation = navigation
        self._render = render
        self._quote_stream = quote_stream
        self._account_stream = account_stream

        self._max_queue_size = queue_size
        self._error_backoff_sec = error_backoff_sec
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=queue_size)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._running = False
        self._stop_requested = False
        self._pumps: List[asyncio.Task] = []

        self._lock = Lock()
        self._stats = {
            "published": 0,
            "dispatched": 0,
            "dropped": 0,
            "errors": 0,
            "high_water_mark": 0,
        }

        # Queue depth warning threshold (80% of max)
        self._queue_warning_threshold = int(queue_size * 0.8)
        self._queue_warning_logged = False

    @property
    def running(self) -> bool:
        return self._running

    # ─────────────────────────────────────────────────────────────────────────
    # Producers
    # ─────────────────────────────────────────────────────────────────────────

    def submit(self, event: DomainEvent) -> None:
        """
        Enqueue an event (non-blocking, thread-safe).

        Can be called from any thread; off-loop callers are routed through
        call_soon_threadsafe.
        """
        with self._lock:
            self._stats["published"] += 1

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if self._loop is None or running_loop is self._loop:
            self._enqueue_direct(event)
        else:
            self._loop.call_soon_threadsafe(self._enqueue_direct, event)

    def _enqueue_direct(self, event: DomainEvent) -> None:
        """Enqueue from the loop thread."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            with self._lock:
                self._stats["dropped"] += 1
            logger.warning(f"Event queue full, dropping {type(event).__name__}")
            return

        current_depth = self._queue.qsize()
        with self._lock:
            if current_depth > self._stats["high_water_mark"]:
                self._stats["high_water_mark"] = current_depth

        # Warn at 80% capacity (once per threshold crossing)
        if current_depth >= self._queue_warning_threshold:
            if not self._queue_warning_logged:
                logger.warning(
                    f"Event queue at {current_depth}/{self._max_queue_size} "
                    f"({100 * current_depth // self._max_queue_size}%) - "
                    "renderer is falling behind the feeds"
                )
                self._queue_warning_logged = True
        else:
            self._queue_warning_logged = False

    async def _pump(self, name: str, stream: Any) -> None:
        """Forward one stream into the queue until it closes."""
        logger.debug(f"{name} pump started")
        while True:
            try:
                event = await stream.get_event()
            except StreamClosedError:
                logger.info(f"{name} stream closed")
                return
            except MarketDataError as e:
                logger.debug(f"{name} event discarded: {e}")
                continue
            except Exception as e:
                logger.debug(f"{name} stream error (discarded): {e}")
                await asyncio.sleep(self._error_backoff_sec)
                continue
            self.submit(event)

    # ─────────────────────────────────────────────────────────────────────────
    # Loop
    # ─────────────────────────────────────────────────────────────────────────

    async def run(self) -> None:
        """
        Run until 'q', end of keyboard input or stop().

        Raises:
            RenderError: The render callback failed.
        """
        if self._running:
            logger.warning("EventMultiplexer already running")
            return

        self._loop = asyncio.get_running_loop()
        self._running = True
        self._stop_requested = False

        if self._quote_stream is not None:
            self._pumps.append(asyncio.create_task(self._pump("quote", self._quote_stream)))
        if self._account_stream is not None:
            self._pumps.append(asyncio.create_task(self._pump("account", self._account_stream)))

        logger.info(
            f"Event loop started ({len(self.portfolio)} positions, "
            f"{self.navigation.num_lines} rows)"
        )

        try:
            self._render_frame()
            while not self._stop_requested:
                event = await self._queue.get()
                with new_cycle():
                    self._dispatch(event)
                    if not self._stop_requested:
                        self._render_frame()
        finally:
            self._running = False
            await self._shutdown()

    def stop(self) -> None:
        """Request the loop to end after the event currently being handled."""
        self._stop_requested = True
        self.submit(InputClosed())

    def _render_frame(self) -> None:
        try:
            self._render()
        except Exception as e:
            raise RenderError(f"Failed to draw the portfolio table: {e}") from e

    def _dispatch(self, event: DomainEvent) -> None:
        """Apply one event to the portfolio or the navigation state."""
        with self._lock:
            self._stats["dispatched"] += 1

        try:
            if isinstance(event, MarketEvent):
                self._on_market_event(event)
            elif isinstance(event, BalanceEvent):
                self.portfolio.apply_balance(event.account_number, event.cash_balance)
            elif isinstance(event, AccountMessage):
                pass
            elif isinstance(event, KeyPress):
                self._on_key(event.key)
            elif isinstance(event, InputError):
                logger.error(f"Keyboard input error: {event.error}")
            elif isinstance(event, InputClosed):
                logger.info("Keyboard input closed")
                self._stop_requested = True
            else:
                logger.debug(f"Ignoring unexpected event {type(event).__name__}")
        except Exception as e:
            with self._lock:
                self._stats["errors"] += 1
            logger.error(f"Error handling {type(event).__name__}: {e}", exc_info=True)

    def _on_market_event(self, event: MarketEvent) -> None:
        payload = event.payload
        if isinstance(payload, QuotePayload):
            self.portfolio.apply_quote(event.stream_sym, payload.bid_price, payload.ask_price)
        elif isinstance(payload, GreeksPayload):
            self.portfolio.apply_greeks(event.stream_sym, payload.theta, payload.delta)

    def _on_key(self, key: str) -> None:
        if key == KEY_QUIT:
            logger.info("Quit requested")
            self._stop_requested = True
        elif key == KEY_DOWN:
            self.navigation.next()
        elif key == KEY_UP:
            self.navigation.previous()
        elif key == KEY_TOGGLE:
            self.navigation.toggle_group()

    async def _shutdown(self) -> None:
        """Cancel pumps and close both streams."""
        for task in self._pumps:
            task.cancel()
        if self._pumps:
            await asyncio.gather(*self._pumps, return_exceptions=True)
        self._pumps.clear()

        for name, stream in (("quote", self._quote_stream), ("account", self._account_stream)):
            if stream is None:
                continue
            try:
                await stream.close()
            except Exception as e:
                logger.warning(f"Error closing {name} stream: {e}")

        logger.info(f"Event loop stopped. Stats: {self.get_stats()}")

    def get_stats(self) -> Dict[str, Any]:
        """Get event loop statistics."""
        with self._lock:
            stats = dict(self._stats)
        stats["queue_size"] = self._queue.qsize()
        stats["queue_capacity"] = self._max_queue_size
        return stats
