"""
liveport dashboard - Textual application.

One screen holding the portfolio table. The event multiplexer runs as a
Textual worker on the app's event loop, so every state change and every
repaint happens on the same asyncio loop the UI uses.

Keys (handled by the event loop, not by Textual bindings):
- up / down: move the selection
- space: open or close the selected group
- q: quit
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from textual import events
from textual.app import App, ComposeResult

from ..application.multiplexer import EventMultiplexer
from ..domain.events.domain_events import KeyPress
from ..domain.exceptions import RenderError
from ..domain.interfaces.brokerage import AccountStream, QuoteSubscription
from ..models.portfolio import Portfolio
from ..utils.logging_setup import get_logger
from .viewmodels.navigation import Navigation
from .viewmodels.portfolio_vm import DashboardFrame
from .widgets.portfolio_table import PortfolioTable

logger = get_logger(__name__)


class LiveportApp(App):
    """Live portfolio dashboard."""

    CSS_PATH = Path(__file__).parent / "css" / "dashboard.tcss"
    TITLE = "liveport"

    def __init__(
        self,
        portfolio: Portfolio,
        quote_stream: Optional[QuoteSubscription] = None,
        account_stream: Optional[AccountStream] = None,
        queue_size: int = 10_000,
        error_backoff_sec: float = 0.1,
        **kwargs: Any,
    ):
        """
        Args:
            portfolio: Bootstrapped portfolio; owned by the event loop from now on.
            quote_stream: Quote/Greeks subscription.
            account_stream: Account notification stream.
            queue_size: Event queue capacity.
            error_backoff_sec: Pause after a stream error.
        """
        super().__init__(**kwargs)
        self.portfolio = portfolio
        self.navigation = Navigation(portfolio)
        self.multiplexer = EventMultiplexer(
            portfolio,
            self.navigation,
            self.render_frame,
            quote_stream=quote_stream,
            account_stream=account_stream,
            queue_size=queue_size,
            error_backoff_sec=error_backoff_sec,
        )
        self.render_error: Optional[RenderError] = None

    def compose(self) -> ComposeResult:
        yield PortfolioTable(id="portfolio")

    def on_mount(self) -> None:
        self.run_worker(self._run_event_loop(), name="event-loop", exclusive=True)

    async def _run_event_loop(self) -> None:
        try:
            await self.multiplexer.run()
        except RenderError as e:
            logger.error(str(e), exc_info=True)
            self.render_error = e
            self.exit(return_code=1)
            return
        self.exit(return_code=0)

    def on_key(self, event: events.Key) -> None:
        """Forward every key press to the event loop."""
        # Textual's driver owns terminal input and its failures; InputError and
        # InputClosed are only produced by non-Textual key sources.
        self.multiplexer.submit(KeyPress(event.key))
        event.stop()

    def render_frame(self) -> None:
        """Paint the current portfolio and selection."""
        table = self.query_one(PortfolioTable)
        table.show(DashboardFrame(self.portfolio, self.navigation.selected))
