"""Pytest configuration and fixtures."""

from decimal import Decimal
from typing import Callable, Dict, List, Optional

import pytest

from liveport.infrastructure.adapters import DemoBrokerage
from liveport.models import BrokerPosition, Direction, Portfolio, StreamerSymbol, Symbol

PositionFactory = Callable[..., BrokerPosition]


def _make_position(
    symbol: str,
    underlying: Optional[str] = None,
    open_price: str = "0",
    close_price: str = "0",
    quantity: str = "1",
    multiplier: int = 1,
    direction: Direction = Direction.LONG,
    instrument_type: Optional[str] = None,
    account: str = "A1",
) -> BrokerPosition:
    underlying = underlying or symbol
    if instrument_type is None:
        instrument_type = "Equity" if symbol == underlying else "Equity Option"
    return BrokerPosition(
        symbol=Symbol(symbol),
        underlying_symbol=Symbol(underlying),
        instrument_type=instrument_type,
        average_open_price=Decimal(open_price),
        close_price=Decimal(close_price),
        quantity=Decimal(quantity),
        multiplier=Decimal(multiplier),
        quantity_direction=direction,
        account_number=account,
    )


@pytest.fixture
def make_position() -> PositionFactory:
    """Factory for BrokerPosition with sensible defaults."""
    return _make_position


@pytest.fixture
def aapl_shares() -> BrokerPosition:
    """10 AAPL shares opened at 150, closed yesterday at 155."""
    return _make_position("AAPL", open_price="150.00", close_price="155.00", quantity="10")


@pytest.fixture
def spy_short_put() -> BrokerPosition:
    """Two short SPY puts opened at 3.50, closed yesterday at 3.00."""
    return _make_position(
        "SPY 240621P00400000",
        underlying="SPY",
        open_price="3.50",
        close_price="3.00",
        quantity="2",
        multiplier=100,
        direction=Direction.SHORT,
    )


@pytest.fixture
def spy_put_sym() -> StreamerSymbol:
    return StreamerSymbol(".SPY240621P400")


@pytest.fixture
def single_share_portfolio(aapl_shares: BrokerPosition) -> Portfolio:
    """One account with 1000.00 cash and 10 AAPL shares."""
    return Portfolio.from_positions(
        [(aapl_shares, StreamerSymbol("AAPL"))],
        balances={"A1": Decimal("1000.00")},
    )


@pytest.fixture
def short_put_portfolio(spy_short_put: BrokerPosition, spy_put_sym: StreamerSymbol) -> Portfolio:
    """The short SPY put, group open."""
    return Portfolio.from_positions([(spy_short_put, spy_put_sym)], expand=True)


@pytest.fixture
def two_group_portfolio() -> Portfolio:
    """AAPL (3 records) and MSFT (2 records), both open."""
    entries = [
        (_make_position("AAPL", close_price="180"), StreamerSymbol("AAPL")),
        (_make_position("AAPL  250718C00200000", "AAPL", close_price="2", multiplier=100),
         StreamerSymbol(".AAPL250718C200")),
        (_make_position("AAPL  250718P00150000", "AAPL", close_price="1", multiplier=100),
         StreamerSymbol(".AAPL250718P150")),
        (_make_position("MSFT", close_price="400"), StreamerSymbol("MSFT")),
        (_make_position("MSFT  250718C00450000", "MSFT", close_price="3", multiplier=100),
         StreamerSymbol(".MSFT250718C450")),
    ]
    return Portfolio.from_positions(entries, expand=True)


@pytest.fixture
def demo_accounts() -> Dict[str, List[BrokerPosition]]:
    """Two accounts: AAPL shares in A1, the short SPY put in A2."""
    return {
        "A1": [_make_position("AAPL", open_price="150.00", close_price="155.00", quantity="10")],
        "A2": [
            _make_position(
                "SPY   240621P00400000",
                underlying="SPY",
                open_price="3.50",
                close_price="3.00",
                quantity="2",
                multiplier=100,
                direction=Direction.SHORT,
                account="A2",
            )
        ],
    }


@pytest.fixture
def demo_brokerage(demo_accounts: Dict[str, List[BrokerPosition]]) -> DemoBrokerage:
    """Demo brokerage with the simulated feeds switched off."""
    return DemoBrokerage(
        positions=demo_accounts,
        balances={"A1": Decimal("1000.00"), "A2": Decimal("500.00")},
        password="secret",
        tick_interval=None,
    )
