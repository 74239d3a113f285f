"""Brokerage position model and instrument identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NewType, Optional

from ..domain.money import ONE

# Brokerage instrument identifier (option contract or equity)
Symbol = NewType("Symbol", str)

# Market-data feed identifier; distinct from Symbol
StreamerSymbol = NewType("StreamerSymbol", str)


class Direction(Enum):
    """Quantity direction of a position."""
    LONG = "Long"
    SHORT = "Short"
    ZERO = "Zero"

    @property
    def sign(self) -> Decimal:
        """Aggregation multiplier: -1 for SHORT, +1 otherwise."""
        return -ONE if self is Direction.SHORT else ONE

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        """Parse a brokerage direction string ("Long", "short", "ZERO", ...)."""
        if isinstance(value, Direction):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown quantity direction: {value!r}")


@dataclass(frozen=True)
class BrokerPosition:
    """
    Open position as downloaded from the brokerage.

    Quantities are absolute; the sign lives in ``quantity_direction``.
    """

    symbol: Symbol
    underlying_symbol: Symbol
    instrument_type: str
    average_open_price: Decimal
    close_price: Decimal
    quantity: Decimal
    multiplier: Decimal
    quantity_direction: Direction

    account_number: Optional[str] = None

    def is_shares(self) -> bool:
        """True for the underlying itself (not a derivative on it)."""
        return self.symbol == self.underlying_symbol
