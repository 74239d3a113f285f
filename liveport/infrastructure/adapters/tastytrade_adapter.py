"""
tastytrade brokerage adapter.

REST calls in the tastytrade SDK are synchronous and run in worker
threads via asyncio.to_thread. Streaming uses the SDK's websocket
clients: DXLinkStreamer for Quote/Greeks and AlertStreamer for account
balances. Each stream runs reader tasks that convert SDK events into
domain events and queue them for the event multiplexer.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from tastytrade import Account, AlertStreamer, DXLinkStreamer, Session
from tastytrade.dxfeed import EventType
from tastytrade.instruments import Cryptocurrency, Equity, Future, FutureOption, Option
from tastytrade.order import InstrumentType
from tastytrade.streamer import AlertType

from ...domain.events.domain_events import (
    BalanceEvent,
    EventClass,
    GreeksPayload,
    MarketEvent,
    QuotePayload,
)
from ...domain.exceptions import MarketDataError
from ...models.account import AccountBalance
from ...models.position import BrokerPosition, Direction, StreamerSymbol, Symbol
from ...utils.logging_setup import get_logger
from .streams import QueuedEventStream

logger = get_logger(__name__)

# Instrument type -> SDK lookup returning an object with .streamer_symbol
_INSTRUMENT_LOOKUP: Dict[str, Callable[[Session, str], Any]] = {
    InstrumentType.EQUITY.value: Equity.get_equity,
    InstrumentType.EQUITY_OPTION.value: Option.get_option,
    InstrumentType.FUTURE.value: Future.get_future,
    InstrumentType.FUTURE_OPTION.value: FutureOption.get_future_option,
    InstrumentType.CRYPTOCURRENCY.value: Cryptocurrency.get_cryptocurrency,
}


def _as_float(value: Optional[Decimal]) -> float:
    return float("nan") if value is None else float(value)


def to_broker_position(position: Any) -> BrokerPosition:
    """Convert an SDK CurrentPosition."""
    instrument_type = position.instrument_type
    return BrokerPosition(
        symbol=Symbol(position.symbol),
        underlying_symbol=Symbol(position.underlying_symbol),
        instrument_type=getattr(instrument_type, "value", str(instrument_type)),
        average_open_price=Decimal(position.average_open_price),
        close_price=Decimal(position.close_price),
        quantity=Decimal(position.quantity),
        multiplier=Decimal(position.multiplier),
        quantity_direction=Direction.parse(position.quantity_direction),
        account_number=position.account_number,
    )


def to_market_event(event: Any) -> MarketEvent:
    """
    Convert an SDK dxfeed Quote or Greeks event.

    Raises:
        MarketDataError: Not a Quote or Greeks event.
    """
    stream_sym = StreamerSymbol(event.eventSymbol)
    if hasattr(event, "bidPrice"):
        return MarketEvent(stream_sym, QuotePayload(_as_float(event.bidPrice), _as_float(event.askPrice)))
    if hasattr(event, "theta"):
        return MarketEvent(stream_sym, GreeksPayload(_as_float(event.theta), _as_float(event.delta)))
    raise MarketDataError(f"Unsupported market event {type(event).__name__} for {stream_sym}")


class TastytradeAccount:
    """BrokerAccount over an SDK Account."""

    def __init__(self, session: Session, account: Account) -> None:
        self._session = session
        self.raw = account

    def number(self) -> str:
        return self.raw.account_number

    async def positions(self) -> List[BrokerPosition]:
        raw_positions = await asyncio.to_thread(self.raw.get_positions, self._session)
        return [to_broker_position(p) for p in raw_positions]

    async def balance(self) -> AccountBalance:
        raw = await asyncio.to_thread(self.raw.get_balances, self._session)
        return AccountBalance(account_number=raw.account_number, cash_balance=raw.cash_balance)


class TastytradeAccountStream(QueuedEventStream):
    """Account balances from the AlertStreamer."""

    def __init__(self, streamer: AlertStreamer) -> None:
        super().__init__("account")
        self._streamer = streamer

    async def subscribe_to_account(self, account: TastytradeAccount) -> None:
        await self._streamer.subscribe_accounts([account.raw])
        if not self.has_readers:
            self.start_reader(self._read_balances())

    async def _read_balances(self) -> None:
        async for balance in self._streamer.listen(AlertType.ACCOUNT_BALANCE):
            self.push(BalanceEvent(balance.account_number, balance.cash_balance))

    async def _close_source(self) -> None:
        await self._streamer.close()


class TastytradeQuoteSubscription(QueuedEventStream):
    """Quote and/or Greeks events from a DXLinkStreamer."""

    def __init__(self, streamer: DXLinkStreamer, event_classes: EventClass) -> None:
        super().__init__("quote")
        self._streamer = streamer
        self._event_types: List[EventType] = []
        if event_classes & EventClass.QUOTE:
            self._event_types.append(EventType.QUOTE)
        if event_classes & EventClass.GREEKS:
            self._event_types.append(EventType.GREEKS)

    async def add_symbols(self, symbols: Iterable[StreamerSymbol]) -> None:
        symbols = list(symbols)
        if not symbols:
            return
        for event_type in self._event_types:
            await self._streamer.subscribe(event_type, symbols)
        if not self.has_readers:
            for event_type in self._event_types:
                self.start_reader(self._read_events(event_type))
        logger.info(f"Subscribed {len(symbols)} symbols to {[t.value for t in self._event_types]}")

    async def _read_events(self, event_type: EventType) -> None:
        async for event in self._streamer.listen(event_type):
            try:
                self.push(to_market_event(event))
            except MarketDataError as e:
                self.push(e)

    async def _close_source(self) -> None:
        await self._streamer.close()


class TastytradeQuoteStreamer:
    """QuoteStreamer over one DXLinkStreamer connection."""

    def __init__(self, streamer: DXLinkStreamer) -> None:
        self._streamer = streamer

    async def create_sub(self, event_classes: EventClass) -> TastytradeQuoteSubscription:
        return TastytradeQuoteSubscription(self._streamer, event_classes)

    async def close(self) -> None:
        await self._streamer.close()


class TastytradeSession:
    """BrokerSession over an SDK Session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    async def accounts(self) -> List[TastytradeAccount]:
        raw_accounts = await asyncio.to_thread(Account.get_accounts, self._session)
        return [TastytradeAccount(self._session, a) for a in raw_accounts]

    async def get_streamer_symbol(self, instrument_type: str, symbol: Symbol) -> StreamerSymbol:
        lookup = _INSTRUMENT_LOOKUP.get(instrument_type)
        if lookup is None:
            raise LookupError(f"Unsupported instrument type for {symbol}: {instrument_type}")
        instrument = await asyncio.to_thread(lookup, self._session, symbol)
        if not instrument.streamer_symbol:
            raise LookupError(f"No streamer symbol for {symbol}")
        return StreamerSymbol(instrument.streamer_symbol)

    async def create_account_streamer(self) -> TastytradeAccountStream:
        return TastytradeAccountStream(await AlertStreamer.create(self._session))

    async def create_quote_streamer(self) -> TastytradeQuoteStreamer:
        return TastytradeQuoteStreamer(await DXLinkStreamer.create(self._session))


class TastytradeClient:
    """BrokerageClient for the tastytrade production API."""

    def __init__(self, is_test: bool = False) -> None:
        self._is_test = is_test

    async def login(self, user: str, password: str) -> TastytradeSession:
        session = await asyncio.to_thread(Session, user, password, is_test=self._is_test)
        logger.info(f"Logged in to tastytrade as {user}")
        return TastytradeSession(session)
