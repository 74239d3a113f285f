"""Tests for command line parsing."""

import pytest

from main import cli_overrides, parse_args


class TestParseArgs:
    """Argument validation."""

    def test_credentials_required_without_demo(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["-l", "user"])
        assert exc_info.value.code == 2

    def test_live_credentials(self) -> None:
        args = parse_args(["-l", "user", "-p", "pw"])
        assert (args.login, args.password) == ("user", "pw")
        assert args.demo is None

    def test_demo_needs_no_credentials(self) -> None:
        args = parse_args(["--demo", "--expand", "--log-level", "debug"])
        assert args.demo is True
        assert args.log_level == "DEBUG"


class TestCliOverrides:
    """Unset flags stay None so lower config layers win."""

    def test_unset_flags(self) -> None:
        overrides = cli_overrides(parse_args(["-l", "u", "-p", "p"]))
        assert overrides == {
            "demo": None,
            "logging": {"level": None, "dir": None, "verbose": None},
            "dashboard": {"expand_groups": None},
        }

    def test_set_flags(self) -> None:
        overrides = cli_overrides(parse_args(["--demo", "-v", "--log-dir", "/tmp/x"]))
        assert overrides["demo"] is True
        assert overrides["logging"]["verbose"] is True
        assert overrides["logging"]["dir"] == "/tmp/x"
