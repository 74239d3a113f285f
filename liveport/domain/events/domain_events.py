"""
Domain events consumed by the event multiplexer.

Three sources feed the dashboard: the quote stream (MarketEvent), the
account stream (BalanceEvent, AccountMessage) and the keyboard (KeyPress,
InputError, InputClosed). Every event is an immutable dataclass so it can
cross from an adapter thread to the event loop without copying.

Usage:
    from liveport.domain.events import MarketEvent, QuotePayload

    await queue.put(MarketEvent(stream_sym, QuotePayload(bid_price=2.4, ask_price=2.6)))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntFlag
from typing import Any, Dict, Optional, Union

from ...models.position import StreamerSymbol


class EventClass(IntFlag):
    """Market-data event classes a quote subscription can request."""
    QUOTE = 1
    GREEKS = 2


# =============================================================================
# Base
# =============================================================================

@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base class for all events delivered to the multiplexer."""


# =============================================================================
# Market data
# =============================================================================

@dataclass(frozen=True, slots=True)
class QuotePayload:
    """Top-of-book prices."""
    bid_price: float
    ask_price: float


@dataclass(frozen=True, slots=True)
class GreeksPayload:
    """Per-unit option sensitivities."""
    theta: float
    delta: float


@dataclass(frozen=True, slots=True)
class OtherPayload:
    """Any feed event class the dashboard does not display (trades, summaries...)."""
    kind: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


MarketPayload = Union[QuotePayload, GreeksPayload, OtherPayload]


@dataclass(frozen=True, slots=True)
class MarketEvent(DomainEvent):
    """One market-data event for a streamer symbol."""
    stream_sym: StreamerSymbol
    payload: MarketPayload


# =============================================================================
# Account stream
# =============================================================================

@dataclass(frozen=True, slots=True)
class BalanceEvent(DomainEvent):
    """Cash balance update for one account."""
    account_number: str
    cash_balance: Decimal


@dataclass(frozen=True, slots=True)
class AccountMessage(DomainEvent):
    """Account-stream message the dashboard does not act on (orders, positions...)."""
    kind: str = ""
    account_number: Optional[str] = None


# =============================================================================
# Keyboard
# =============================================================================

@dataclass(frozen=True, slots=True)
class KeyPress(DomainEvent):
    """A key pressed in the terminal ("q", "up", "down", "space", ...)."""
    key: str


@dataclass(frozen=True, slots=True)
class InputError(DomainEvent):
    """The keyboard source reported an error; the dashboard keeps running."""
    error: str


@dataclass(frozen=True, slots=True)
class InputClosed(DomainEvent):
    """The keyboard source reached end of stream."""


AccountEvent = Union[BalanceEvent, AccountMessage]
