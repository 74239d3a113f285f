"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    dir: str = "./logs"
    timezone: str = "local"  # Timezone for log timestamps (e.g., "America/New_York", "UTC", or "local")
    verbose: bool = False


@dataclass
class StreamConfig:
    """Event queue and stream handling."""
    queue_size: int = 10_000
    error_backoff_sec: float = 0.1  # Pause after a stream error before reading again
    demo_tick_interval_sec: float = 0.5  # Simulated quote cadence in demo mode


@dataclass
class DashboardConfig:
    """Dashboard configuration."""
    expand_groups: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    demo: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)
