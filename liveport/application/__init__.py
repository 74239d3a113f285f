"""Application layer: bootstrap and the event loop."""

from .bootstrap import BootstrapResult, bootstrap
from .multiplexer import EventMultiplexer

__all__ = ["BootstrapResult", "EventMultiplexer", "bootstrap"]
