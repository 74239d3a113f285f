"""
TUI ViewModels - Framework-agnostic data transformation layer.

ViewModels handle:
- Row building and aggregation
- Diff computation for incremental updates
- Keyboard selection state

ViewModels MUST NOT import Textual modules or hold widget references.
"""

from .base import BaseViewModel, CellUpdate
from .navigation import Navigation, RowRef
from .portfolio_vm import COLUMN_TITLES, COLUMN_WIDTHS, DashboardFrame, PortfolioViewModel

__all__ = [
    "BaseViewModel",
    "CellUpdate",
    "Navigation",
    "RowRef",
    "COLUMN_TITLES",
    "COLUMN_WIDTHS",
    "DashboardFrame",
    "PortfolioViewModel",
]
