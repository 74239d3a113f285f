"""
Domain exceptions for liveport.

Distinguishes recoverable runtime errors (a bad event, a dropped stream
message) that the dashboard logs and survives, from fatal errors (failed
login, broken terminal) that end the session.
"""


class LiveportError(Exception):
    """Base class for all liveport exceptions."""
    pass


class RecoverableError(LiveportError):
    """
    Errors the dashboard survives without restarting.

    Examples:
    - Undecodable market-data event
    - Temporary stream hiccup
    """
    pass


class FatalError(LiveportError):
    """
    Errors that terminate the session.

    Examples:
    - Authentication failure
    - Symbol translation failure during startup
    - Render failure
    """
    pass


class StreamError(RecoverableError):
    """A data stream failed to deliver an event."""
    pass


class StreamClosedError(StreamError):
    """A data stream is closed or exhausted and will deliver no more events."""
    pass


class MarketDataError(RecoverableError):
    """Issues decoding or applying market data."""
    pass


class BootstrapError(FatalError):
    """Initial data load failed; the dashboard cannot start."""
    pass


class RenderError(FatalError):
    """Painting a frame failed."""
    pass


class ConfigurationError(FatalError):
    """Invalid configuration value."""
    pass
