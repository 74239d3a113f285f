"""
Exact decimal arithmetic for prices, quantities and P&L.

All monetary values are ``decimal.Decimal``. Rounding is banker's rounding
(ROUND_HALF_EVEN) everywhere so that group and portfolio sums agree with the
per-position values they are built from.

Usage:
    from liveport.domain.money import to_decimal, round2, to_net

    mid = to_decimal((bid + ask) / 2)      # None for NaN/Inf
    net_liq = to_net(mid, amount, multiplier, sign)
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)

_TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a number to Decimal without ever raising.

    Floats go through their shortest repr, so ``2.5`` becomes ``Decimal("2.5")``
    rather than the exact binary expansion.

    Args:
        value: float, int, str or Decimal.

    Returns:
        Finite Decimal, or None for NaN, infinities and unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(repr(value))
    try:
        result = Decimal(value) if isinstance(value, int) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    return result if result.is_finite() else None


def _clear_negative_zero(value: Decimal) -> Decimal:
    if value.is_zero() and value.is_signed():
        return value.copy_abs()
    return value


def round2(value: Decimal) -> Decimal:
    """Round to exactly two decimal places."""
    return _clear_negative_zero(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_EVEN))


def round_dp(value: Decimal, places: int) -> Decimal:
    """
    Round to at most ``places`` decimal places, without padding.

    ``round_dp(Decimal("2"), 5)`` stays ``2``; ``round_dp(Decimal("1.234567"), 5)``
    becomes ``1.23457``.
    """
    exponent = value.as_tuple().exponent
    if isinstance(exponent, int) and exponent >= -places:
        return _clear_negative_zero(value)
    quantum = ONE.scaleb(-places)
    return _clear_negative_zero(value.quantize(quantum, rounding=ROUND_HALF_EVEN))


def to_net(value: Decimal, amount: Decimal, multiplier: Decimal, sign: Decimal) -> Decimal:
    """Scale a per-unit value to the whole position: value x amount x multiplier x sign, 2 dp."""
    return round2(value * amount * multiplier * sign)


def percent_of(numerator: Decimal, denominator: Decimal) -> Optional[Decimal]:
    """
    Percentage of ``numerator`` in ``denominator`` rounded to 2 dp.

    Returns:
        The percentage; 0.00 when both are zero; None when only the
        denominator is zero.
    """
    if denominator.is_zero():
        return round2(ZERO) if numerator.is_zero() else None
    return round2(numerator * HUNDRED / denominator)
