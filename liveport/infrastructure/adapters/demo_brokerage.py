"""
Demo brokerage for running the dashboard without a tastytrade account.

Serves a fixed sample portfolio and simulates the live feeds: a seeded
random walk of bid/ask quotes, option Greeks that drift with it, and
occasional cash balance changes. Streams can also be driven by hand with
``push()``, which makes this the test double for the live adapter.
"""

from __future__ import annotations

import asyncio
import random
import re
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from ...domain.events.domain_events import (
    BalanceEvent,
    EventClass,
    GreeksPayload,
    MarketEvent,
    QuotePayload,
)
from ...domain.money import round2
from ...models.account import AccountBalance
from ...models.position import BrokerPosition, Direction, StreamerSymbol, Symbol
from ...utils.logging_setup import get_logger
from .streams import QueuedEventStream

logger = get_logger(__name__)

DEMO_LOGIN = "demo"

# OCC option symbol: root padded to 6, yymmdd, C/P, strike x 1000 in 8 digits
_OCC_PATTERN = re.compile(r"^(?P<root>.{1,6}?)\s*(?P<date>\d{6})(?P<kind>[CP])(?P<strike>\d{8})$")

# Feed option symbol: .ROOTyymmddC/Pstrike
_FEED_OPTION_PATTERN = re.compile(r"^\.(?P<root>[A-Z0-9/]+?)(?P<date>\d{6})(?P<kind>[CP])")


def _position(
    symbol: str,
    underlying: str,
    instrument_type: str,
    open_price: str,
    close_price: str,
    quantity: str,
    multiplier: int,
    direction: Direction,
    account: str,
) -> BrokerPosition:
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


def sample_accounts() -> Dict[str, List[BrokerPosition]]:
    """Sample positions keyed by account number."""
    return {
        "5WT00001": [
            _position("SPY", "SPY", "Equity", "440.25", "450.10", "100", 1, Direction.LONG, "5WT00001"),
            _position("SPY   250620P00400000", "SPY", "Equity Option", "3.50", "3.00", "2", 100,
                      Direction.SHORT, "5WT00001"),
            _position("SPY   250620C00500000", "SPY", "Equity Option", "4.10", "3.85", "1", 100,
                      Direction.LONG, "5WT00001"),
            _position("AAPL", "AAPL", "Equity", "172.40", "180.00", "25.5", 1, Direction.LONG, "5WT00001"),
            _position("AAPL  250718C00200000", "AAPL", "Equity Option", "2.15", "1.80", "3", 100,
                      Direction.SHORT, "5WT00001"),
        ],
        "5WT00002": [
            _position("QQQ", "QQQ", "Equity", "385.00", "380.00", "10", 1, Direction.LONG, "5WT00002"),
            _position("TSLA", "TSLA", "Equity", "250.00", "240.00", "20", 1, Direction.SHORT, "5WT00002"),
            _position("TSLA  250620P00200000", "TSLA", "Equity Option", "6.40", "5.20", "1", 100,
                      Direction.LONG, "5WT00002"),
        ],
    }


def sample_balances() -> Dict[str, Decimal]:
    return {
        "5WT00001": Decimal("12500.00"),
        "5WT00002": Decimal("4310.55"),
    }


def demo_streamer_symbol(instrument_type: str, symbol: str) -> StreamerSymbol:
    """
    Feed symbol the way the market-data feed spells it.

    Equities stream under their own ticker; equity options use the
    compact ".ROOTyymmddC/Pstrike" form.

    Raises:
        LookupError: Unsupported instrument type or malformed option symbol.
    """
    if instrument_type == "Equity":
        return StreamerSymbol(symbol)
    if instrument_type == "Equity Option":
        match = _OCC_PATTERN.match(symbol)
        if match is None:
            raise LookupError(f"Malformed option symbol: {symbol!r}")
        strike = (Decimal(match.group("strike")) / 1000).normalize()
        return StreamerSymbol(
            f".{match.group('root').strip()}{match.group('date')}{match.group('kind')}{strike:f}"
        )
    raise LookupError(f"Unsupported instrument type for {symbol}: {instrument_type}")



class DemoAccountStream(QueuedEventStream):
    """Account notifications; simulates occasional cash balance changes."""

    def __init__(
        self,
        balances: Dict[str, Decimal],
        rng: random.Random,
        interval: Optional[float],
    ) -> None:
        super().__init__("account")
        self._balances = dict(balances)
        self._rng = rng
        self._interval = interval
        self.subscribed: List[str] = []

    async def subscribe_to_account(self, account: "DemoAccount") -> None:
        self.subscribed.append(account.number())
        logger.debug(f"Demo account stream subscribed to {account.number()}")
        if self._interval is not None and not self.has_readers:
            self.start_reader(self._simulate())

    async def _simulate(self) -> None:
        while True:
            await asyncio.sleep(self._interval * self._rng.uniform(5, 15))
            number = self._rng.choice(self.subscribed)
            change = Decimal(str(round(self._rng.uniform(-50, 50), 2)))
            self._balances[number] = round2(self._balances.get(number, Decimal(0)) + change)
            self.push(BalanceEvent(number, self._balances[number]))


class DemoQuoteSubscription(QueuedEventStream):
    """Quote/Greeks subscription; simulates a random-walk feed for its symbols."""

    def __init__(
        self,
        event_classes: EventClass,
        base_prices: Dict[StreamerSymbol, float],
        rng: random.Random,
        interval: Optional[float],
    ) -> None:
        super().__init__("quote")
        self.event_classes = event_classes
        self.symbols: Set[StreamerSymbol] = set()
        self._prices = dict(base_prices)
        self._rng = rng
        self._interval = interval

    async def add_symbols(self, symbols: Iterable[StreamerSymbol]) -> None:
        self.symbols.update(symbols)
        logger.debug(f"Demo quote subscription now has {len(self.symbols)} symbols")
        if self._interval is not None and self.symbols and not self.has_readers:
            self.start_reader(self._simulate())

    async def _simulate(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            for stream_sym in sorted(self.symbols):
                for event in self._generate(stream_sym):
                    self.push(event)

    def _generate(self, stream_sym: StreamerSymbol) -> List[MarketEvent]:
        """Move one symbol's price and emit the enabled event classes."""
        price = self._prices.get(stream_sym, 100.0)
        price = max(0.05, price * (1 + self._rng.uniform(-0.002, 0.002)))
        self._prices[stream_sym] = price

        events: List[MarketEvent] = []
        if self.event_classes & EventClass.QUOTE:
            spread = max(0.01, price * self._rng.uniform(0.0001, 0.001))
            events.append(MarketEvent(
                stream_sym,
                QuotePayload(bid_price=round(price - spread / 2, 2), ask_price=round(price + spread / 2, 2)),
            ))

        option = _FEED_OPTION_PATTERN.match(stream_sym)
        if option is not None and self.event_classes & EventClass.GREEKS:
            is_call = option.group("kind") == "C"
            delta = self._rng.uniform(0.05, 0.8)
            events.append(MarketEvent(
                stream_sym,
                GreeksPayload(
                    theta=round(-self._rng.uniform(0.01, 0.10), 4),
                    delta=round(delta if is_call else -delta, 4),
                ),
            ))
        return events


class DemoQuoteStreamer:
    """Hands out demo quote subscriptions."""

    def __init__(self, base_prices: Dict[StreamerSymbol, float], rng: random.Random, interval: Optional[float]) -> None:
        self._base_prices = base_prices
        self._rng = rng
        self._interval = interval
        self.subscriptions: List[DemoQuoteSubscription] = []

    async def create_sub(self, event_classes: EventClass) -> DemoQuoteSubscription:
        sub = DemoQuoteSubscription(event_classes, self._base_prices, self._rng, self._interval)
        self.subscriptions.append(sub)
        return sub

    async def close(self) -> None:
        for sub in self.subscriptions:
            await sub.close()


class DemoAccount:
    """One sample account."""

    def __init__(self, number: str, positions: List[BrokerPosition], cash_balance: Decimal) -> None:
        self._number = number
        self._positions = list(positions)
        self._cash_balance = cash_balance

    def number(self) -> str:
        return self._number

    async def positions(self) -> List[BrokerPosition]:
        return list(self._positions)

    async def balance(self) -> AccountBalance:
        return AccountBalance(account_number=self._number, cash_balance=self._cash_balance)


class DemoSession:
    """Authenticated demo session."""

    def __init__(self, brokerage: "DemoBrokerage") -> None:
        self._brokerage = brokerage
        self.account_streams: List[DemoAccountStream] = []
        self.quote_streamers: List[DemoQuoteStreamer] = []

    async def accounts(self) -> List[DemoAccount]:
        b = self._brokerage
        return [
            DemoAccount(number, b.positions[number], b.balances.get(number, Decimal(0)))
            for number in b.positions
        ]

    async def get_streamer_symbol(self, instrument_type: str, symbol: Symbol) -> StreamerSymbol:
        overrides = self._brokerage.streamer_symbols
        if symbol in overrides:
            return overrides[symbol]
        return demo_streamer_symbol(instrument_type, symbol)

    async def create_account_streamer(self) -> DemoAccountStream:
        b = self._brokerage
        stream = DemoAccountStream(b.balances, b.rng, b.balance_interval)
        self.account_streams.append(stream)
        return stream

    async def create_quote_streamer(self) -> DemoQuoteStreamer:
        b = self._brokerage
        base_prices: Dict[StreamerSymbol, float] = {}
        for positions in b.positions.values():
            for position in positions:
                stream_sym = await self.get_streamer_symbol(position.instrument_type, position.symbol)
                base_prices[stream_sym] = float(position.close_price)
        streamer = DemoQuoteStreamer(base_prices, b.rng, b.tick_interval)
        self.quote_streamers.append(streamer)
        return streamer


class DemoBrokerage:
    """
    Offline brokerage client.

    Any login is accepted unless ``password`` is set, in which case it
    must match. Pass ``tick_interval=None`` to disable the simulated feeds
    and drive the streams with ``push()`` instead.
    """

    def __init__(
        self,
        positions: Optional[Dict[str, List[BrokerPosition]]] = None,
        balances: Optional[Dict[str, Decimal]] = None,
        streamer_symbols: Optional[Dict[Symbol, StreamerSymbol]] = None,
        password: Optional[str] = None,
        seed: int = 42,
        tick_interval: Optional[float] = 0.5,
    ) -> None:
        self.positions = positions if positions is not None else sample_accounts()
        self.balances = balances if balances is not None else sample_balances()
        self.streamer_symbols = dict(streamer_symbols or {})
        self.rng = random.Random(seed)
        self.tick_interval = tick_interval
        self.balance_interval = tick_interval
        self._password = password
        self.sessions: List[DemoSession] = []

    async def login(self, user: str, password: str) -> DemoSession:
        if self._password is not None and password != self._password:
            raise PermissionError(f"Invalid credentials for {user}")
        logger.info(f"Demo login as {user or DEMO_LOGIN}")
        session = DemoSession(self)
        self.sessions.append(session)
        return session
