"""
PortfolioViewModel - Framework-agnostic portfolio table rows.

Builds one frame of the dashboard table from the Portfolio and the
current selection:
- Position total pre-pass (denominator for PORT %)
- Group header rows with profit and net liq sums
- Position rows for open groups
- Cash section and grand total
- Reverse-video highlight and ">> " gutter on the selected row

Each row carries a stable key so the widget can diff frames and update
only the cells that changed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ...domain.money import ZERO, percent_of, round2
from ...models.portfolio import Portfolio, PriceRecord
from ...models.position import Symbol
from ..formatters import (
    format_amount,
    format_decimal,
    format_greek,
    format_percent,
    format_symbol,
    highlight,
)
from .base import BaseViewModel, Row

COLUMN_TITLES = (
    "PORT %",
    "SYMBOL",
    "CURRENT",
    "AMOUNT",
    "TRADE PRICE",
    "PROFIT",
    "THETA",
    "DELTA",
    "NET LIQ",
)
COLUMN_WIDTHS = (8, 25, 12, 12, 12, 12, 12, 12, 12)

GUTTER_WIDTH = 3
SELECTED_MARKER = ">> "
BLANK_GUTTER = " " * GUTTER_WIDTH

@dataclass(frozen=True)
class DashboardFrame:
    """Inputs for one rendered frame."""

    portfolio: Portfolio
    selected: Optional[int] = None


def _pad(cells: List[str]) -> List[str]:
    return cells + [""] * (len(COLUMN_TITLES) - len(cells))


class PortfolioViewModel(BaseViewModel[DashboardFrame]):
    """
    ViewModel for the portfolio table.

    Every row is ``[gutter, *nine columns]``. Only the group and position
    rows are selectable; their position in the frame matches the
    Navigation row index.
    """

    def __init__(self) -> None:
        super().__init__()
        self._last_total: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        """Grand total (positions plus cash) of the last built frame."""
        return self._last_total

    def build_rows(self, frame: DashboardFrame) -> List[Row]:
        """All rows of one frame, in display order."""
        portfolio = frame.portfolio

        position_total = sum(
            (record.signed_value()
             for _, group in portfolio.iter_groups()
             for _, record in group.iter_records()),
            ZERO,
        )

        selectable: List[Row] = []
        for underlying, group in portfolio.iter_groups():
            records = list(group.iter_records())
            profit_sum = sum((record.profit() for _, record in records), ZERO)
            net_liq_sum = sum((record.signed_value() for _, record in records), ZERO)

            selectable.append((
                f"group:{underlying}",
                self._group_cells(underlying, profit_sum, net_liq_sum, position_total),
            ))
            if group.open:
                for stream_sym, record in records:
                    selectable.append((
                        f"pos:{stream_sym}",
                        self._position_cells(underlying, record, position_total),
                    ))

        rows: List[Row] = []
        for index, (key, cells) in enumerate(selectable):
            if index == frame.selected:
                rows.append((key, [SELECTED_MARKER] + [highlight(cell) for cell in cells]))
            else:
                rows.append((key, [BLANK_GUTTER] + cells))

        total = position_total
        rows.append(("cash-blank", [BLANK_GUTTER] + _pad([])))
        rows.append(("cash", [BLANK_GUTTER] + _pad(["CASH"])))
        for account_number, balance in portfolio.iter_balances():
            total += balance
            rows.append((
                f"cash:{account_number}",
                [BLANK_GUTTER] + _pad([f" {format_symbol(account_number)}", format_decimal(balance)]),
            ))

        rows.append(("total-blank", [BLANK_GUTTER] + _pad([])))
        rows.append(("total", [BLANK_GUTTER] + _pad(["TOTAL", format_decimal(total)])))

        self._last_total = total
        return rows

    def _group_cells(
        self,
        underlying: Symbol,
        profit_sum: Decimal,
        net_liq_sum: Decimal,
        position_total: Decimal,
    ) -> List[str]:
        return [
            format_percent(percent_of(net_liq_sum, position_total)),
            format_symbol(underlying),
            "",
            "",
            "",
            format_decimal(round2(profit_sum)),
            "",
            "",
            format_decimal(round2(net_liq_sum)),
        ]

    def _position_cells(
        self,
        underlying: Symbol,
        record: PriceRecord,
        position_total: Decimal,
    ) -> List[str]:
        net_liq = record.signed_value()
        label = " SHARES" if record.symbol == underlying else f" {record.symbol}"
        return [
            format_percent(percent_of(net_liq, position_total)),
            format_symbol(label),
            format_decimal(round2(record.current)),
            format_amount(record),
            format_decimal(record.open),
            format_decimal(record.profit()),
            format_greek(record, record.greeks.theta),
            format_greek(record, record.greeks.delta),
            format_decimal(net_liq),
        ]
