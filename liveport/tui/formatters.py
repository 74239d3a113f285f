"""
Formatting utilities for the portfolio table.

Decimals render in their natural form: no thousands separators, no
currency prefix. Text that may contain markup characters is escaped so
Rich prints it literally.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Optional

from rich.markup import escape

from ..domain.money import round_dp
from ..models.portfolio import PriceRecord

NAN_TOKEN = "NaN"


def format_decimal(value: Optional[Decimal]) -> str:
    """Plain decimal text; empty for None."""
    if value is None:
        return ""
    return str(value)


def format_percent(value: Optional[Decimal]) -> str:
    """Percentage with a "%" suffix; "NaN%" when undefined (zero denominator)."""
    if value is None:
        return f"{NAN_TOKEN}%"
    return f"{value}%"


def format_amount(record: PriceRecord) -> str:
    """Signed quantity to at most 5 decimal places."""
    return str(round_dp(record.signed_amount(), 5))


def format_greek(record: PriceRecord, value: float) -> str:
    """
    Position-level Greek for one record.

    Non-finite per-unit values render as "NaN", "inf" or "-inf".
    """
    net = record.net_greek(value)
    if net is not None:
        return str(net)
    if math.isnan(value):
        return NAN_TOKEN
    return "inf" if value > 0 else "-inf"


def format_symbol(text: str) -> str:
    """Escape instrument text for Rich markup."""
    return escape(text)


def highlight(text: str) -> str:
    """Reverse-video markup for the selected row."""
    if not text:
        return text
    return f"[reverse]{text}[/reverse]"
