"""Domain events for the dashboard event loop."""

from .domain_events import (
    AccountEvent,
    AccountMessage,
    BalanceEvent,
    DomainEvent,
    EventClass,
    GreeksPayload,
    InputClosed,
    InputError,
    KeyPress,
    MarketEvent,
    MarketPayload,
    OtherPayload,
    QuotePayload,
)

__all__ = [
    "AccountEvent",
    "AccountMessage",
    "BalanceEvent",
    "DomainEvent",
    "EventClass",
    "GreeksPayload",
    "InputClosed",
    "InputError",
    "KeyPress",
    "MarketEvent",
    "MarketPayload",
    "OtherPayload",
    "QuotePayload",
]
