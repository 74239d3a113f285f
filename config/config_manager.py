"""
Configuration manager.

There is no configuration file. Settings are layered in this order:
1. Built-in defaults
2. LIVEPORT_* environment variables
3. Command-line overrides

Later layers override earlier ones.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional, Tuple

from liveport.domain.exceptions import ConfigurationError
from liveport.utils.logging_setup import get_logger

from .models import AppConfig, DashboardConfig, LoggingConfig, StreamConfig

logger = get_logger(__name__)

DEFAULTS: Dict[str, Any] = {
    "demo": False,
    "logging": {
        "level": "INFO",
        "dir": "./logs",
        "timezone": "local",
        "verbose": False,
    },
    "stream": {
        "queue_size": 10_000,
        "error_backoff_sec": 0.1,
        "demo_tick_interval_sec": 0.5,
    },
    "dashboard": {
        "expand_groups": False,
    },
}

# Environment variable -> config path
ENV_OVERRIDES: Dict[str, Tuple[str, ...]] = {
    "LIVEPORT_LOG_LEVEL": ("logging", "level"),
    "LIVEPORT_LOG_DIR": ("logging", "dir"),
    "LIVEPORT_LOG_TIMEZONE": ("logging", "timezone"),
    "LIVEPORT_VERBOSE": ("logging", "verbose"),
    "LIVEPORT_QUEUE_SIZE": ("stream", "queue_size"),
    "LIVEPORT_ERROR_BACKOFF_SEC": ("stream", "error_backoff_sec"),
    "LIVEPORT_DEMO_TICK_SEC": ("stream", "demo_tick_interval_sec"),
    "LIVEPORT_EXPAND": ("dashboard", "expand_groups"),
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigManager:
    """
    Configuration manager with environment support.

    Usage:
        manager = ConfigManager()
        config = manager.load({"logging": {"level": "DEBUG"}})
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            environ: Environment to read LIVEPORT_* variables from (default os.environ).
        """
        self.environ = os.environ if environ is None else environ
        self.config: Dict[str, Any] = {}

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
        """
        Merge defaults, environment and overrides into an AppConfig.

        Args:
            overrides: Nested dict of explicit settings (e.g. from the CLI).
                None values are skipped so unset flags keep lower layers.

        Raises:
            ConfigurationError: A value has the wrong type or is out of range.
        """
        self.config = self._merge_dicts(DEFAULTS, self._env_config())
        if overrides:
            self.config = self._merge_dicts(self.config, _drop_none(overrides))
        return self._parse_config()

    def _env_config(self) -> Dict[str, Any]:
        """Nested dict built from LIVEPORT_* variables."""
        result: Dict[str, Any] = {}
        for name, path in ENV_OVERRIDES.items():
            if name not in self.environ:
                continue
            node = result
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = self.environ[name]
            logger.debug(f"Config override from environment: {name}")
        return result

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        logging_raw = self.config.get("logging", {})
        level = str(logging_raw.get("level", "INFO")).upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
        logging_config = LoggingConfig(
            level=level,
            dir=str(logging_raw.get("dir", "./logs")),
            timezone=str(logging_raw.get("timezone", "local")),
            verbose=_to_bool("logging.verbose", logging_raw.get("verbose", False)),
        )

        stream_raw = self.config.get("stream", {})
        stream = StreamConfig(
            queue_size=_to_number("stream.queue_size", stream_raw.get("queue_size", 10_000), int, minimum=1),
            error_backoff_sec=_to_number(
                "stream.error_backoff_sec", stream_raw.get("error_backoff_sec", 0.1), float, minimum=0
            ),
            demo_tick_interval_sec=_to_number(
                "stream.demo_tick_interval_sec", stream_raw.get("demo_tick_interval_sec", 0.5), float, minimum=0.01
            ),
        )

        dashboard_raw = self.config.get("dashboard", {})
        dashboard = DashboardConfig(
            expand_groups=_to_bool("dashboard.expand_groups", dashboard_raw.get("expand_groups", False)),
        )

        return AppConfig(
            logging=logging_config,
            stream=stream,
            dashboard=dashboard,
            demo=_to_bool("demo", self.config.get("demo", False)),
            raw=self.config,
        )


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict):
            result[key] = _drop_none(value)
        elif value is not None:
            result[key] = value
    return result


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _to_number(name: str, value: Any, kind: type, minimum: float) -> Any:
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}") from e
    if number < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {number}")
    return number
