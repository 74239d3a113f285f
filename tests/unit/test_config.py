"""Tests for layered configuration."""

import pytest

from config import AppConfig, ConfigManager
from liveport.domain.exceptions import ConfigurationError


class TestDefaults:
    """Built-in defaults."""

    def test_defaults(self) -> None:
        config = ConfigManager(environ={}).load()
        assert isinstance(config, AppConfig)
        assert config.logging.level == "INFO"
        assert config.logging.dir == "./logs"
        assert config.stream.queue_size == 10_000
        assert config.stream.error_backoff_sec == 0.1
        assert config.dashboard.expand_groups is False
        assert config.demo is False


class TestLayering:
    """Environment and CLI overrides."""

    def test_environment_overrides_defaults(self) -> None:
        config = ConfigManager(environ={
            "LIVEPORT_QUEUE_SIZE": "500",
            "LIVEPORT_LOG_LEVEL": "debug",
            "LIVEPORT_EXPAND": "yes",
        }).load()
        assert config.stream.queue_size == 500
        assert config.logging.level == "DEBUG"
        assert config.dashboard.expand_groups is True

    def test_cli_overrides_environment(self) -> None:
        manager = ConfigManager(environ={"LIVEPORT_LOG_LEVEL": "ERROR"})
        config = manager.load({"logging": {"level": "WARNING"}})
        assert config.logging.level == "WARNING"

    def test_none_overrides_are_ignored(self) -> None:
        manager = ConfigManager(environ={"LIVEPORT_LOG_DIR": "/tmp/lp"})
        config = manager.load({"demo": None, "logging": {"dir": None, "verbose": True}})
        assert config.logging.dir == "/tmp/lp"
        assert config.logging.verbose is True
        assert config.demo is False

    def test_raw_keeps_merged_dict(self) -> None:
        config = ConfigManager(environ={}).load({"demo": True})
        assert config.raw["demo"] is True
        assert config.raw["stream"]["queue_size"] == 10_000


class TestValidation:
    """Bad values raise ConfigurationError."""

    @pytest.mark.parametrize(
        "environ",
        [
            {"LIVEPORT_QUEUE_SIZE": "lots"},
            {"LIVEPORT_QUEUE_SIZE": "0"},
            {"LIVEPORT_ERROR_BACKOFF_SEC": "-1"},
            {"LIVEPORT_DEMO_TICK_SEC": "0"},
            {"LIVEPORT_VERBOSE": "maybe"},
            {"LIVEPORT_LOG_LEVEL": "LOUD"},
        ],
    )
    def test_invalid_environment(self, environ) -> None:
        with pytest.raises(ConfigurationError):
            ConfigManager(environ=environ).load()
