"""Account balance model."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AccountBalance:
    """Cash balance of one brokerage account."""

    account_number: str
    cash_balance: Decimal
