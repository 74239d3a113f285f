"""Portfolio, position and account models."""

from .account import AccountBalance
from .portfolio import Greeks, Portfolio, PriceRecord, UnderlyingGroup
from .position import BrokerPosition, Direction, StreamerSymbol, Symbol

__all__ = [
    "AccountBalance",
    "BrokerPosition",
    "Direction",
    "Greeks",
    "Portfolio",
    "PriceRecord",
    "StreamerSymbol",
    "Symbol",
    "UnderlyingGroup",
]
