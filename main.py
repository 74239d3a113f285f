"""
liveport - Main Entry Point

Usage:
    python main.py -l USER -p PASSWORD     # Live tastytrade account
    python main.py --demo                  # Offline sample portfolio with simulated quotes
    python main.py --demo --expand -v      # All groups open, DEBUG logging
"""

from __future__ import annotations
import asyncio
import argparse
import sys
from typing import List, Optional
from zoneinfo import ZoneInfoNotFoundError

from config.config_manager import ConfigManager
from liveport import __version__
from liveport.application.bootstrap import bootstrap
from liveport.domain.exceptions import BootstrapError, ConfigurationError
from liveport.infrastructure.adapters import DemoBrokerage
from liveport.infrastructure.adapters.demo_brokerage import DEMO_LOGIN
from liveport.tui.app import LiveportApp
from liveport.utils import (
    disable_console_logging,
    flush_all_loggers,
    set_log_timezone,
    setup_category_logging,
    shutdown_logging,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="liveport",
        description="Live tastytrade portfolio dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keys:
  up/down   move the selection
  space     open or close the selected group
  q         quit

Environment:
  LIVEPORT_LOG_LEVEL, LIVEPORT_LOG_DIR, LIVEPORT_LOG_TIMEZONE, LIVEPORT_VERBOSE,
  LIVEPORT_QUEUE_SIZE, LIVEPORT_ERROR_BACKOFF_SEC, LIVEPORT_DEMO_TICK_SEC,
  LIVEPORT_EXPAND
        """
    )

    parser.add_argument("-l", "--login", type=str, help="tastytrade user name or email")
    parser.add_argument("-p", "--password", type=str, help="tastytrade password")

    parser.add_argument(
        "--demo",
        action="store_true",
        default=None,
        help="Run offline with sample positions and a simulated quote feed"
    )

    parser.add_argument(
        "--expand",
        action="store_true",
        default=None,
        help="Start with every underlying group open"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=None,
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set log level (default: INFO, ignored if --verbose is set)"
    )

    parser.add_argument("--log-dir", type=str, help="Directory for log files (default: ./logs)")

    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if not args.demo and (not args.login or not args.password):
        parser.error("--login and --password are required unless --demo is given")

    return args


def cli_overrides(args: argparse.Namespace) -> dict:
    """Nested config overrides from parsed arguments (None = not given)."""
    return {
        "demo": args.demo,
        "logging": {
            "level": args.log_level,
            "dir": args.log_dir,
            "verbose": args.verbose,
        },
        "dashboard": {
            "expand_groups": args.expand,
        },
    }


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    try:
        config = ConfigManager().load(cli_overrides(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    log_tz = config.logging.timezone
    try:
        set_log_timezone(log_tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        print(f"Configuration error: unknown log timezone {log_tz!r} ({e})", file=sys.stderr)
        return EXIT_FAILURE

    profile = "demo" if config.demo else "live"
    category_loggers = setup_category_logging(
        profile=profile,
        log_dir=config.logging.dir,
        level=config.logging.level,
        console=True,  # Until the dashboard owns the terminal
        verbose=config.logging.verbose,
    )
    system_logger = category_loggers["system"]
    system_logger.info(
        "Starting liveport",
        extra={"data": {"version": __version__, "profile": profile, "log_timezone": log_tz}},
    )

    try:
        if config.demo:
            client = DemoBrokerage(tick_interval=config.stream.demo_tick_interval_sec)
            login, password = args.login or DEMO_LOGIN, args.password or ""
        else:
            from liveport.infrastructure.adapters.tastytrade_adapter import TastytradeClient
            client = TastytradeClient()
            login, password = args.login, args.password

        try:
            result = await bootstrap(
                client,
                login,
                password,
                progress=lambda message: print(message, flush=True),
                expand_groups=config.dashboard.expand_groups,
            )
        except BootstrapError as e:
            system_logger.error("Bootstrap failed", extra={"data": {"error": str(e)}})
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_FAILURE

        disable_console_logging()

        app = LiveportApp(
            result.portfolio,
            quote_stream=result.quote_stream,
            account_stream=result.account_stream,
            queue_size=config.stream.queue_size,
            error_backoff_sec=config.stream.error_backoff_sec,
        )
        await app.run_async()

        if app.render_error is not None:
            print(f"Error: {app.render_error}", file=sys.stderr)
            return app.return_code or EXIT_FAILURE

        system_logger.info(
            "liveport stopped",
            extra={"data": {"return_code": app.return_code, "events": app.multiplexer.get_stats()}},
        )
        return app.return_code or EXIT_OK
    finally:
        flush_all_loggers()
        shutdown_logging()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    try:
        exit_code = asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
