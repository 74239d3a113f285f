"""Tests for the portfolio model."""

from decimal import Decimal

import pytest

from liveport.models import (
    Direction,
    Greeks,
    Portfolio,
    PriceRecord,
    StreamerSymbol,
    Symbol,
    UnderlyingGroup,
)


def _record(symbol: str = "AAPL", **kwargs) -> PriceRecord:
    values = dict(
        symbol=Symbol(symbol),
        open=Decimal("1.00"),
        current=Decimal("1.00"),
        amount=Decimal(1),
        multiplier=Decimal(1),
        direction=Direction.LONG,
    )
    values.update(kwargs)
    return PriceRecord(**values)


class TestDirection:
    """Direction parsing and sign rule."""

    def test_sign(self) -> None:
        assert Direction.SHORT.sign == Decimal(-1)
        assert Direction.LONG.sign == Decimal(1)
        assert Direction.ZERO.sign == Decimal(1)

    def test_parse_is_case_insensitive(self) -> None:
        assert Direction.parse("short") is Direction.SHORT
        assert Direction.parse("Long") is Direction.LONG
        assert Direction.parse(Direction.ZERO) is Direction.ZERO

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            Direction.parse("sideways")


class TestPriceRecord:
    """Per-position derived values."""

    def test_negative_fields_rejected(self) -> None:
        with pytest.raises(ValueError):
            _record(amount=Decimal(-1))

    def test_short_option_values(self) -> None:
        record = _record(
            "SPY 240621P00400000",
            open=Decimal("3.50"),
            current=Decimal("2.5"),
            amount=Decimal(2),
            multiplier=Decimal(100),
            direction=Direction.SHORT,
        )
        assert record.signed_value() == Decimal("-500.00")
        assert record.profit() == Decimal("200.00")
        assert record.signed_amount() == Decimal(-2)

    def test_net_greek_non_finite(self) -> None:
        record = _record()
        assert record.net_greek(float("nan")) is None
        assert record.net_greek(float("inf")) is None

    def test_zero_direction_counts_as_long(self) -> None:
        record = _record(current=Decimal("5"), direction=Direction.ZERO)
        assert record.signed_value() == Decimal("5.00")


class TestUnderlyingGroup:
    """Group row accounting."""

    def test_row_count(self) -> None:
        group = UnderlyingGroup(records={StreamerSymbol("A"): _record(), StreamerSymbol("B"): _record()})
        assert group.row_count == 1
        group.open = True
        assert group.row_count == 3

    def test_empty_group_counts_header_only(self) -> None:
        group = UnderlyingGroup(open=True)
        assert group.row_count == 1

    def test_records_iterate_sorted(self) -> None:
        group = UnderlyingGroup(records={StreamerSymbol("Z"): _record(), StreamerSymbol("A"): _record()})
        assert [sym for sym, _ in group.iter_records()] == ["A", "Z"]


class TestPortfolioConstruction:
    """Building from downloaded positions."""

    def test_groups_sorted_by_underlying(self, make_position) -> None:
        portfolio = Portfolio.from_positions([
            (make_position("MSFT"), StreamerSymbol("MSFT")),
            (make_position("AAPL"), StreamerSymbol("AAPL")),
        ])
        assert [u for u, _ in portfolio.iter_groups()] == ["AAPL", "MSFT"]

    def test_prices_rounded_and_greeks_zero(self, make_position) -> None:
        portfolio = Portfolio.from_positions([
            (make_position("AAPL", open_price="150.005", close_price="155.1"), StreamerSymbol("AAPL")),
        ])
        record = portfolio.get_record(StreamerSymbol("AAPL"))
        assert str(record.open) == "150.00"
        assert str(record.current) == "155.10"
        assert record.greeks == Greeks(0.0, 0.0)

    def test_groups_start_closed_unless_expanded(self, make_position) -> None:
        entries = [(make_position("AAPL"), StreamerSymbol("AAPL"))]
        assert not Portfolio.from_positions(entries).groups["AAPL"].open
        assert Portfolio.from_positions(entries, expand=True).groups["AAPL"].open

    def test_duplicate_streamer_symbol_keeps_last(self, make_position) -> None:
        portfolio = Portfolio.from_positions([
            (make_position("AAPL", quantity="1", account="A1"), StreamerSymbol("AAPL")),
            (make_position("AAPL", quantity="5", account="A2"), StreamerSymbol("AAPL")),
        ])
        assert len(portfolio) == 1
        assert portfolio.get_record(StreamerSymbol("AAPL")).amount == Decimal(5)

    def test_constructor_rejects_duplicates(self) -> None:
        sym = StreamerSymbol("X")
        with pytest.raises(ValueError):
            Portfolio(groups={
                Symbol("A"): UnderlyingGroup(records={sym: _record()}),
                Symbol("B"): UnderlyingGroup(records={sym: _record()}),
            })

    def test_streamer_symbols_sorted(self, two_group_portfolio: Portfolio) -> None:
        symbols = two_group_portfolio.streamer_symbols()
        assert symbols == sorted(symbols)
        assert len(symbols) == 5

    def test_num_lines(self, two_group_portfolio: Portfolio) -> None:
        assert two_group_portfolio.num_lines() == 7
        two_group_portfolio.groups["AAPL"].open = False
        assert two_group_portfolio.num_lines() == 4
        two_group_portfolio.groups["MSFT"].open = False
        assert two_group_portfolio.num_lines() == 2

    def test_empty_portfolio(self) -> None:
        portfolio = Portfolio()
        assert portfolio.num_lines() == 0
        assert len(portfolio) == 0
        assert portfolio.iter_balances() == []


class TestPortfolioUpdates:
    """Applying feed events."""

    def test_quote_sets_midpoint(self, short_put_portfolio: Portfolio, spy_put_sym) -> None:
        assert short_put_portfolio.apply_quote(spy_put_sym, 2.40, 2.60)
        assert short_put_portfolio.get_record(spy_put_sym).current == Decimal("2.5")

    def test_unknown_symbol_leaves_state_unchanged(self, short_put_portfolio: Portfolio, spy_put_sym) -> None:
        before = short_put_portfolio.get_record(spy_put_sym).current
        assert not short_put_portfolio.apply_quote(StreamerSymbol("XYZ"), 1.0, 2.0)
        assert not short_put_portfolio.apply_greeks(StreamerSymbol("XYZ"), -0.1, 0.5)
        record = short_put_portfolio.get_record(spy_put_sym)
        assert record.current == before
        assert record.greeks == Greeks()

    def test_non_finite_quote_keeps_price(self, short_put_portfolio: Portfolio, spy_put_sym) -> None:
        assert not short_put_portfolio.apply_quote(spy_put_sym, float("nan"), 2.60)
        assert not short_put_portfolio.apply_quote(spy_put_sym, None, 2.60)
        assert short_put_portfolio.get_record(spy_put_sym).current == Decimal("3.00")

    def test_greeks_idempotent(self, short_put_portfolio: Portfolio, spy_put_sym) -> None:
        short_put_portfolio.apply_greeks(spy_put_sym, -0.12, -0.30)
        first = short_put_portfolio.get_record(spy_put_sym).greeks
        short_put_portfolio.apply_greeks(spy_put_sym, -0.12, -0.30)
        assert short_put_portfolio.get_record(spy_put_sym).greeks == first == Greeks(-0.12, -0.30)

    def test_balance_last_write_wins(self, single_share_portfolio: Portfolio) -> None:
        single_share_portfolio.apply_balance("A1", Decimal("10"))
        single_share_portfolio.apply_balance("A1", Decimal("20"))
        assert single_share_portfolio.balances == {"A1": Decimal("20")}

    def test_balance_for_new_account(self, single_share_portfolio: Portfolio) -> None:
        assert single_share_portfolio.apply_balance("B9", Decimal("5"))
        assert single_share_portfolio.iter_balances() == [("A1", Decimal("1000.00")), ("B9", Decimal("5"))]

    def test_non_finite_balance_ignored(self, single_share_portfolio: Portfolio) -> None:
        assert not single_share_portfolio.apply_balance("A1", Decimal("NaN"))
        assert single_share_portfolio.balances["A1"] == Decimal("1000.00")
