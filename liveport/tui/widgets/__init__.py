"""Textual widgets."""

from .portfolio_table import PortfolioTable

__all__ = ["PortfolioTable"]
