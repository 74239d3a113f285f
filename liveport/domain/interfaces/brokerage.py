"""
Brokerage protocols: authentication, accounts, symbol translation and streams.

Implementations:
- TastytradeClient (live, tastytrade SDK)
- DemoBrokerage (offline sample portfolio, also the test double)

Usage:
    client: BrokerageClient = TastytradeClient()
    session = await client.login(user, password)
    for account in await session.accounts():
        positions = await account.positions()

Streams raise StreamClosedError from ``get_event`` once closed or exhausted.
"""

from __future__ import annotations

from typing import Iterable, List, Protocol, runtime_checkable

from ...models.account import AccountBalance
from ...models.position import BrokerPosition, StreamerSymbol, Symbol
from ..events.domain_events import AccountEvent, EventClass, MarketEvent


@runtime_checkable
class BrokerAccount(Protocol):
    """One brokerage account."""

    def number(self) -> str:
        """Account number."""
        ...

    async def positions(self) -> List[BrokerPosition]:
        """Download all open positions."""
        ...

    async def balance(self) -> AccountBalance:
        """Download the current cash balance."""
        ...


@runtime_checkable
class AccountStream(Protocol):
    """Streaming account notifications (balances, orders, ...)."""

    async def subscribe_to_account(self, account: BrokerAccount) -> None:
        """Start receiving notifications for ``account``."""
        ...

    async def get_event(self) -> AccountEvent:
        """
        Wait for the next account notification.

        Raises:
            StreamClosedError: The stream is closed.
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class QuoteSubscription(Protocol):
    """A market-data subscription for a fixed set of event classes."""

    async def add_symbols(self, symbols: Iterable[StreamerSymbol]) -> None:
        """Add streamer symbols to the subscription."""
        ...

    async def get_event(self) -> MarketEvent:
        """
        Wait for the next market-data event.

        Raises:
            StreamClosedError: The subscription is closed.
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class QuoteStreamer(Protocol):
    """Market-data connection that hands out subscriptions."""

    async def create_sub(self, event_classes: EventClass) -> QuoteSubscription:
        """
        Open a subscription.

        Args:
            event_classes: Bitmask of EventClass members to receive.
        """
        ...

    async def close(self) -> None:
        """Disconnect, ending every subscription."""
        ...


@runtime_checkable
class BrokerSession(Protocol):
    """An authenticated brokerage session."""

    async def accounts(self) -> List[BrokerAccount]:
        """Enumerate the user's accounts."""
        ...

    async def get_streamer_symbol(self, instrument_type: str, symbol: Symbol) -> StreamerSymbol:
        """
        Translate a brokerage symbol to its market-data feed symbol.

        Raises:
            LookupError: The instrument is unknown.
        """
        ...

    async def create_account_streamer(self) -> AccountStream:
        ...

    async def create_quote_streamer(self) -> QuoteStreamer:
        ...


@runtime_checkable
class BrokerageClient(Protocol):
    """Entry point to a brokerage."""

    async def login(self, user: str, password: str) -> BrokerSession:
        """
        Authenticate.

        Raises:
            PermissionError: Credentials rejected.
            ConnectionError: Brokerage unreachable.
        """
        ...
