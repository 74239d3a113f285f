"""
In-memory portfolio state: positions grouped by underlying plus cash balances.

Entities are created once at bootstrap. At runtime only ``current``,
``greeks``, the balances and each group's ``open`` flag change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..domain.money import round2, to_decimal, to_net
from ..utils.logging_setup import get_logger
from .position import BrokerPosition, Direction, StreamerSymbol, Symbol

logger = get_logger(__name__)


@dataclass
class Greeks:
    """Latest option sensitivities; (0, 0) until the first Greeks event."""
    theta: float = 0.0
    delta: float = 0.0


@dataclass
class PriceRecord:
    """One open position."""

    symbol: Symbol
    open: Decimal
    current: Decimal
    amount: Decimal
    multiplier: Decimal
    direction: Direction
    greeks: Greeks = field(default_factory=Greeks)
    instrument_type: str = ""

    def __post_init__(self) -> None:
        for name in ("open", "current", "amount", "multiplier"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative for {self.symbol}")

    @property
    def sign(self) -> Decimal:
        return self.direction.sign

    def signed_value(self) -> Decimal:
        """Net liq: current x amount x multiplier x sign, 2 dp."""
        return to_net(self.current, self.amount, self.multiplier, self.sign)

    def profit(self) -> Decimal:
        """Unrealized P&L against the average open price, 2 dp."""
        return to_net(self.current - self.open, self.amount, self.multiplier, self.sign)

    def net_greek(self, value: float) -> Optional[Decimal]:
        """Position-level Greek, or None when the per-unit value is NaN/Inf."""
        per_unit = to_decimal(value)
        if per_unit is None:
            return None
        return to_net(per_unit, self.amount, self.multiplier, self.sign)

    def signed_amount(self) -> Decimal:
        return self.amount * self.sign


@dataclass
class UnderlyingGroup:
    """Positions sharing one underlying; ``open`` means child rows are visible."""

    open: bool = False
    records: Dict[StreamerSymbol, PriceRecord] = field(default_factory=dict)

    def iter_records(self) -> Iterator[Tuple[StreamerSymbol, PriceRecord]]:
        """Records in sorted streamer-symbol order."""
        for stream_sym in sorted(self.records):
            yield stream_sym, self.records[stream_sym]

    @property
    def row_count(self) -> int:
        """Display rows: the header plus visible children."""
        return 1 + (len(self.records) if self.open else 0)


class Portfolio:
    """
    Top-level dashboard state.

    Groups iterate in sorted underlying order, balances in sorted account
    order. Lookups by streamer symbol go through an index built once at
    construction, since no position is added or removed after bootstrap.
    """

    def __init__(
        self,
        groups: Optional[Mapping[Symbol, UnderlyingGroup]] = None,
        balances: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        groups = groups or {}
        self._groups: Dict[Symbol, UnderlyingGroup] = {
            underlying: groups[underlying] for underlying in sorted(groups)
        }
        self.balances: Dict[str, Decimal] = dict(balances or {})

        self._index: Dict[StreamerSymbol, PriceRecord] = {}
        for underlying, group in self._groups.items():
            for stream_sym, record in group.records.items():
                if stream_sym in self._index:
                    raise ValueError(
                        f"Streamer symbol {stream_sym} appears more than once (in {underlying})"
                    )
                self._index[stream_sym] = record

    @classmethod
    def from_positions(
        cls,
        entries: Iterable[Tuple[BrokerPosition, StreamerSymbol]],
        balances: Optional[Mapping[str, Decimal]] = None,
        expand: bool = False,
    ) -> "Portfolio":
        """
        Build a portfolio from downloaded positions and their streamer symbols.

        Open price and the initial current price (last close) are rounded to
        2 dp; Greeks start at zero. A streamer symbol seen twice keeps the
        last position.

        Args:
            entries: (position, streamer symbol) pairs.
            balances: account number -> cash balance.
            expand: Start with every group open.
        """
        groups: Dict[Symbol, UnderlyingGroup] = {}
        owner: Dict[StreamerSymbol, Symbol] = {}

        for position, stream_sym in entries:
            record = PriceRecord(
                symbol=position.symbol,
                open=round2(position.average_open_price),
                current=round2(position.close_price),
                amount=position.quantity,
                multiplier=position.multiplier,
                direction=position.quantity_direction,
                instrument_type=position.instrument_type,
            )

            previous = owner.get(stream_sym)
            if previous is not None:
                logger.warning(
                    f"Duplicate position for {stream_sym}; keeping the last one",
                    extra={"data": {"symbol": position.symbol, "account": position.account_number}},
                )
                del groups[previous].records[stream_sym]
                if not groups[previous].records:
                    del groups[previous]

            group = groups.setdefault(position.underlying_symbol, UnderlyingGroup(open=expand))
            group.records[stream_sym] = record
            owner[stream_sym] = position.underlying_symbol

        return cls(groups=groups, balances=balances)

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def groups(self) -> Mapping[Symbol, UnderlyingGroup]:
        return self._groups

    def iter_groups(self) -> Iterator[Tuple[Symbol, UnderlyingGroup]]:
        """(underlying, group) pairs in sorted underlying order."""
        return iter(self._groups.items())

    def iter_balances(self) -> List[Tuple[str, Decimal]]:
        """(account number, cash balance) pairs in sorted account order."""
        return sorted(self.balances.items())

    def get_record(self, stream_sym: StreamerSymbol) -> Optional[PriceRecord]:
        return self._index.get(stream_sym)

    def streamer_symbols(self) -> List[StreamerSymbol]:
        return sorted(self._index)

    def num_lines(self) -> int:
        """Selectable display rows: every group header plus children of open groups."""
        return sum(group.row_count for group in self._groups.values())

    def __len__(self) -> int:
        return len(self._index)

    # ─────────────────────────────────────────────────────────────────────────
    # Updates (called from the event loop only)
    # ─────────────────────────────────────────────────────────────────────────

    def apply_quote(self, stream_sym: StreamerSymbol, bid: float, ask: float) -> bool:
        """
        Set a record's current price to the bid/ask midpoint.

        Unknown symbols are ignored; a NaN/Inf midpoint leaves the price
        unchanged.

        Returns:
            True if the record was updated.
        """
        record = self._index.get(stream_sym)
        if record is None:
            return False

        try:
            mid = (float(bid) + float(ask)) / 2
        except (TypeError, ValueError):
            logger.debug(f"Unusable quote for {stream_sym}: bid={bid!r} ask={ask!r}")
            return False

        current = to_decimal(mid)
        if current is None:
            logger.debug(f"Non-finite midpoint for {stream_sym}; keeping {record.current}")
            return False

        record.current = current
        return True

    def apply_greeks(self, stream_sym: StreamerSymbol, theta: float, delta: float) -> bool:
        """
        Overwrite a record's Greeks. Unknown symbols are ignored.

        Returns:
            True if the record was found.
        """
        record = self._index.get(stream_sym)
        if record is None:
            return False
        record.greeks = Greeks(theta=float(theta), delta=float(delta))
        return True

    def apply_balance(self, account_number: str, cash_balance: Decimal) -> bool:
        """
        Record an account's cash balance (last write wins).

        Accounts first seen through streaming get a new entry. A balance
        that does not convert to a finite Decimal is ignored.

        Returns:
            True if the balance was stored.
        """
        value = to_decimal(cash_balance)
        if value is None:
            logger.debug(f"Unusable cash balance for {account_number}: {cash_balance!r}")
            return False
        if account_number not in self.balances:
            logger.info(f"New account observed via streaming: {account_number}")
        self.balances[account_number] = value
        return True
