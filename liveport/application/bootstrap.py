"""
Bootstrap: load the portfolio and open the live streams.

Runs once before the dashboard starts. Every failure is translated into a
BootstrapError carrying a message fit for the terminal, after closing any
stream opened so far.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from ..domain.events.domain_events import EventClass
from ..domain.exceptions import BootstrapError
from ..domain.interfaces.brokerage import (
    AccountStream,
    BrokerageClient,
    BrokerSession,
    QuoteStreamer,
    QuoteSubscription,
)
from ..domain.money import to_decimal
from ..models.portfolio import Portfolio
from ..models.position import BrokerPosition, StreamerSymbol
from ..utils.logging_setup import get_logger
from ..utils.perf_logger import log_timing_async

logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]

MSG_LOGIN = "Logging in..."
MSG_ACCOUNTS = "Downloading account info..."
MSG_SYMBOLS = "Downloading symbols..."
MSG_RECORDS = "Setting up records..."
MSG_STREAMING = "Setting up quote streaming..."


@dataclass
class BootstrapResult:
    """Everything the event loop needs."""

    portfolio: Portfolio
    quote_stream: QuoteSubscription
    account_stream: AccountStream


class _Step:
    """Names the current phase so failures can say what was being attempted."""

    def __init__(self, progress: Optional[ProgressCallback]) -> None:
        self._progress = progress
        self.description = ""

    def __call__(self, message: str) -> None:
        self.description = message.rstrip(".")
        logger.info(message)
        if self._progress is not None:
            self._progress(message)


async def bootstrap(
    client: BrokerageClient,
    login: str,
    password: str,
    progress: Optional[ProgressCallback] = None,
    expand_groups: bool = False,
) -> BootstrapResult:
    """
    Authenticate, download accounts and positions, and subscribe to quotes.

    Args:
        client: Brokerage to load from.
        login: Brokerage user name.
        password: Brokerage password.
        progress: Called with a short message as each phase starts.
        expand_groups: Start with every underlying group open.

    Returns:
        BootstrapResult with the portfolio and both open streams.

    Raises:
        BootstrapError: Any phase failed.
    """
    step = _Step(progress)
    account_stream: Optional[AccountStream] = None
    quote_streamer: Optional[QuoteStreamer] = None
    quote_stream: Optional[QuoteSubscription] = None

    try:
        step(MSG_LOGIN)
        async with log_timing_async("login", warn_threshold_ms=2000, error_threshold_ms=10000):
            session = await client.login(login, password)

        step(MSG_ACCOUNTS)
        async with log_timing_async("account_download", warn_threshold_ms=2000, error_threshold_ms=10000) as ctx:
            account_stream = await session.create_account_streamer()
            positions, balances = await _download_accounts(session, account_stream)
            ctx["accounts"] = len(balances)
            ctx["positions"] = len(positions)

        step(MSG_SYMBOLS)
        async with log_timing_async("symbol_translation", warn_threshold_ms=2000, error_threshold_ms=10000):
            stream_syms = await _translate_symbols(session, positions)

        step(MSG_RECORDS)
        portfolio = Portfolio.from_positions(
            zip(positions, stream_syms), balances=balances, expand=expand_groups
        )

        step(MSG_STREAMING)
        async with log_timing_async("quote_subscription"):
            quote_streamer = await session.create_quote_streamer()
            quote_stream = await quote_streamer.create_sub(EventClass.QUOTE | EventClass.GREEKS)
            await quote_stream.add_symbols(portfolio.streamer_symbols())

    except BaseException as e:
        await _close_quietly(quote_stream or quote_streamer, account_stream)
        if isinstance(e, BootstrapError) or not isinstance(e, Exception):
            raise
        logger.error(f"Bootstrap failed while {step.description.lower()}: {e}", exc_info=True)
        raise BootstrapError(f"{step.description} failed: {e}") from e

    logger.info(
        f"Bootstrap complete: {len(portfolio)} positions in {len(portfolio.groups)} groups, "
        f"{len(portfolio.balances)} accounts"
    )
    return BootstrapResult(portfolio=portfolio, quote_stream=quote_stream, account_stream=account_stream)


async def _download_accounts(
    session: BrokerSession,
    account_stream: AccountStream,
) -> Tuple[List[BrokerPosition], Dict[str, Decimal]]:
    """Subscribe to each account, then collect its positions and cash balance."""
    positions: List[BrokerPosition] = []
    balances: Dict[str, Decimal] = {}

    for account in await session.accounts():
        number = account.number()
        await account_stream.subscribe_to_account(account)
        account_positions = await account.positions()
        positions.extend(account_positions)

        balance = await account.balance()
        cash = to_decimal(balance.cash_balance)
        if cash is None:
            raise BootstrapError(f"Account {number} returned an unusable cash balance: {balance.cash_balance!r}")
        balances[number] = cash
        logger.debug(f"Account {number}: {len(account_positions)} positions, cash {cash}")

    return positions, balances


async def _translate_symbols(
    session: BrokerSession,
    positions: List[BrokerPosition],
) -> List[StreamerSymbol]:
    """Look up every streamer symbol concurrently; order matches ``positions``."""
    return list(await asyncio.gather(*(
        session.get_streamer_symbol(position.instrument_type, position.symbol)
        for position in positions
    )))


async def _close_quietly(*streams: Optional[object]) -> None:
    for stream in streams:
        if stream is None:
            continue
        try:
            await stream.close()  # type: ignore[attr-defined]
        except Exception as e:
            logger.warning(f"Error closing stream after failed bootstrap: {e}")
