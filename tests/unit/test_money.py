"""Tests for decimal money helpers."""

from decimal import Decimal

import pytest

from liveport.domain.money import ONE, ZERO, percent_of, round2, round_dp, to_decimal, to_net


class TestToDecimal:
    """Conversion of feed values to Decimal."""

    def test_float_uses_shortest_repr(self) -> None:
        assert to_decimal(2.5) == Decimal("2.5")
        assert str(to_decimal(0.1)) == "0.1"

    def test_non_finite_values_are_none(self) -> None:
        assert to_decimal(float("nan")) is None
        assert to_decimal(float("inf")) is None
        assert to_decimal(float("-inf")) is None
        assert to_decimal(Decimal("NaN")) is None

    def test_strings_and_ints(self) -> None:
        assert to_decimal(" 12.30 ") == Decimal("12.30")
        assert to_decimal(7) == Decimal(7)

    def test_garbage_is_none(self) -> None:
        assert to_decimal("abc") is None
        assert to_decimal(None) is None


class TestRounding:
    """Two-place and bounded rounding."""

    def test_round2_is_bankers_rounding(self) -> None:
        assert round2(Decimal("2.345")) == Decimal("2.34")
        assert round2(Decimal("2.355")) == Decimal("2.36")

    def test_round2_pads_to_two_places(self) -> None:
        assert str(round2(Decimal("50"))) == "50.00"

    def test_round2_clears_negative_zero(self) -> None:
        assert str(round2(Decimal("-0.001"))) == "0.00"

    def test_round_dp_does_not_pad(self) -> None:
        assert str(round_dp(Decimal("2"), 5)) == "2"
        assert str(round_dp(Decimal("25.5"), 5)) == "25.5"

    def test_round_dp_truncates_long_fractions(self) -> None:
        assert round_dp(Decimal("1.234567"), 5) == Decimal("1.23457")


class TestToNet:
    """Position scaling with direction sign."""

    def test_short_option(self) -> None:
        assert to_net(Decimal("2.5"), Decimal(2), Decimal(100), -ONE) == Decimal("-500.00")

    def test_long_shares(self) -> None:
        assert str(to_net(Decimal("155.00"), Decimal(10), ONE, ONE)) == "1550.00"


class TestPercentOf:
    """Portfolio percentage with a zero denominator."""

    def test_regular(self) -> None:
        assert percent_of(Decimal("1550.00"), Decimal("1550.00")) == Decimal("100.00")
        assert percent_of(Decimal(1), Decimal(3)) == Decimal("33.33")

    def test_zero_over_zero_is_zero(self) -> None:
        assert str(percent_of(ZERO, ZERO)) == "0.00"

    @pytest.mark.parametrize("numerator", [Decimal("10"), Decimal("-10")])
    def test_nonzero_over_zero_is_undefined(self, numerator: Decimal) -> None:
        assert percent_of(numerator, ZERO) is None
