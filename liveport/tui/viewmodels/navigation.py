"""
Navigation - keyboard selection over the flattened portfolio rows.

The flattened display has one header row per underlying group, followed by
that group's position rows when the group is open. Rows are counted in
``Portfolio.iter_groups`` order. Cash and total rows are not selectable.

Framework agnostic: no Textual imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...models.portfolio import Portfolio
from ...models.position import StreamerSymbol, Symbol


@dataclass(frozen=True)
class RowRef:
    """What a selectable row shows: a group header (stream_sym None) or one position."""

    underlying: Symbol
    stream_sym: Optional[StreamerSymbol] = None

    @property
    def is_header(self) -> bool:
        return self.stream_sym is None


class Navigation:
    """
    Selected row index plus the row count it is bounded by.

    Invariant: ``0 <= selected < num_lines`` whenever ``selected`` is set.
    """

    def __init__(self, portfolio: Portfolio) -> None:
        self._portfolio = portfolio
        self.selected: Optional[int] = None
        self.num_lines: int = portfolio.num_lines()

    def next(self) -> None:
        """Move down one row, wrapping to the top."""
        if self.num_lines == 0:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        else:
            self.selected = (self.selected + 1) % self.num_lines

    def previous(self) -> None:
        """Move up one row, wrapping to the bottom."""
        if self.num_lines == 0:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        else:
            self.selected = (self.selected - 1) % self.num_lines

    def toggle_group(self) -> None:
        """Open or close the group whose header is selected; no-op on position rows."""
        if self.selected is None:
            return

        row = 0
        for _, group in self._portfolio.iter_groups():
            was_open = group.open
            if row == self.selected:
                group.open = not group.open
                break
            row += 1
            if was_open:
                row += len(group.records)

        self.recompute()

    def recompute(self) -> None:
        """Refresh ``num_lines`` and clamp the selection into range."""
        self.num_lines = self._portfolio.num_lines()
        if self.num_lines == 0:
            self.selected = None
        elif self.selected is not None and self.selected >= self.num_lines:
            self.selected = self.num_lines - 1

    def locate(self, index: int) -> Optional[RowRef]:
        """Map a flattened row index to its group header or position."""
        if index < 0:
            return None

        row = 0
        for underlying, group in self._portfolio.iter_groups():
            if row == index:
                return RowRef(underlying)
            row += 1
            if group.open:
                if index < row + len(group.records):
                    stream_syms = sorted(group.records)
                    return RowRef(underlying, stream_syms[index - row])
                row += len(group.records)
        return None

    def selected_row(self) -> Optional[RowRef]:
        if self.selected is None:
            return None
        return self.locate(self.selected)
