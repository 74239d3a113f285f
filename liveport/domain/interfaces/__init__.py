"""Protocols for external collaborators."""

from .brokerage import (
    AccountStream,
    BrokerAccount,
    BrokerageClient,
    BrokerSession,
    QuoteStreamer,
    QuoteSubscription,
)

__all__ = [
    "AccountStream",
    "BrokerAccount",
    "BrokerageClient",
    "BrokerSession",
    "QuoteStreamer",
    "QuoteSubscription",
]
