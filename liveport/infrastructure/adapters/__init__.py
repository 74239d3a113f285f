"""
Brokerage adapters.

The tastytrade adapter is imported on demand (``tastytrade_adapter``) so
demo mode and the tests run without a brokerage connection.
"""

from .demo_brokerage import DemoBrokerage, demo_streamer_symbol, sample_accounts, sample_balances
from .streams import QueuedEventStream

__all__ = ["DemoBrokerage", "QueuedEventStream", "demo_streamer_symbol", "sample_accounts", "sample_balances"]
