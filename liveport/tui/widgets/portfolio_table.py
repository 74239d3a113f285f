"""
Portfolio table widget.

Paints frames produced by PortfolioViewModel:
- Full rebuild on first paint or when rows appear, disappear or move
- Cell-level updates otherwise (quotes and Greeks only touch a few cells)
"""

from __future__ import annotations

from typing import Any, List

from textual.widgets import DataTable

from ..viewmodels.portfolio_vm import (
    COLUMN_TITLES,
    COLUMN_WIDTHS,
    GUTTER_WIDTH,
    DashboardFrame,
    PortfolioViewModel,
)


class PortfolioTable(DataTable):
    """
    Grouped positions, cash balances and total.

    Never takes focus: every key press belongs to the dashboard's event
    loop, not to the table's own cursor.
    """

    can_focus = False

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(cursor_type="none", show_cursor=False, zebra_stripes=False, **kwargs)
        self._view_model = PortfolioViewModel()
        self._column_keys: List[str] = []

    @property
    def view_model(self) -> PortfolioViewModel:
        return self._view_model

    def on_mount(self) -> None:
        """Initialize table columns."""
        self._column_keys.clear()
        self.add_column("", width=GUTTER_WIDTH, key="gutter")
        self._column_keys.append("gutter")
        for idx, (title, width) in enumerate(zip(COLUMN_TITLES, COLUMN_WIDTHS)):
            col_key = f"col-{idx}"
            self.add_column(title, width=width, key=col_key)
            self._column_keys.append(col_key)

    def show(self, frame: DashboardFrame) -> None:
        """Paint one frame."""
        if self._view_model.full_refresh_needed(frame):
            self._full_rebuild(frame)
        else:
            self._incremental_update(frame)

    def _full_rebuild(self, frame: DashboardFrame) -> None:
        """Full table rebuild (first paint or structural change)."""
        self._view_model.compute_updates(frame)
        self.clear()
        for row_key, cells in self._view_model.painted_rows():
            self.add_row(*cells, key=row_key)

    def _incremental_update(self, frame: DashboardFrame) -> None:
        """Update only the cells whose text changed."""
        for cell in self._view_model.compute_updates(frame):
            if cell.column_index < len(self._column_keys):
                self.update_cell(cell.row_key, self._column_keys[cell.column_index], cell.value)
