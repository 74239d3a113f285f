"""Configuration management."""

from .config_manager import ConfigManager
from .models import AppConfig, DashboardConfig, LoggingConfig, StreamConfig

__all__ = ["ConfigManager", "AppConfig", "DashboardConfig", "LoggingConfig", "StreamConfig"]
