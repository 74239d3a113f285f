"""Tests for category logging."""

import json
import logging
from pathlib import Path

import pytest

from liveport.utils.logging_setup import (
    ROOT_LOGGER_NAME,
    disable_console_logging,
    get_category_for_module,
    get_logger,
    reset_session_run_number,
    setup_category_logging,
    shutdown_logging,
)
from liveport.utils.perf_logger import log_timing_async
from liveport.utils.trace_context import get_cycle_id, new_cycle


@pytest.fixture
def log_dir(tmp_path: Path):
    reset_session_run_number()
    yield tmp_path
    shutdown_logging()
    for category in ("system", "adapter", "data", "perf"):
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
    reset_session_run_number()


class TestCategoryRouting:
    """Module to category mapping."""

    @pytest.mark.parametrize(
        "module, category",
        [
            ("liveport.infrastructure.adapters.demo_brokerage", "adapter"),
            ("liveport.models.portfolio", "data"),
            ("liveport.domain.money", "data"),
            ("liveport.application.multiplexer", "system"),
            ("liveport.tui.app", "system"),
            ("somewhere.else", "system"),
        ],
    )
    def test_routing(self, module: str, category: str) -> None:
        assert get_category_for_module(module) == category

    def test_logger_name(self) -> None:
        assert get_logger("liveport.models.portfolio").name == "liveport.data"


class TestSetupCategoryLogging:
    """File layout and JSON records."""

    def test_one_file_per_category(self, log_dir: Path) -> None:
        setup_category_logging(profile="demo", log_dir=str(log_dir))
        files = sorted(p.name for p in log_dir.rglob("*.log"))
        assert len(files) == 4
        assert all(name.startswith("liveport_demo_") and name.endswith("_1.log") for name in files)

    def test_json_record_with_cycle(self, log_dir: Path) -> None:
        loggers = setup_category_logging(profile="demo", log_dir=str(log_dir), level="INFO")
        with new_cycle() as cycle_id:
            loggers["data"].info("balance updated", extra={"data": {"account": "A1"}})
        loggers["data"].debug("filtered out")
        shutdown_logging()

        (path,) = log_dir.rglob("liveport_demo_dat_*.log")
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["msg"] == "balance updated"
        assert entry["cat"] == "data"
        assert entry["cycle"] == cycle_id
        assert entry["data"] == {"account": "A1"}

    def test_disable_console_logging(self, log_dir: Path) -> None:
        loggers = setup_category_logging(profile="demo", log_dir=str(log_dir), console=True)
        assert any(type(h) is logging.StreamHandler for h in loggers["system"].handlers)
        disable_console_logging()
        assert not any(type(h) is logging.StreamHandler for h in loggers["system"].handlers)


class TestTraceContext:
    """Cycle IDs."""

    def test_no_cycle(self) -> None:
        assert get_cycle_id() == "------"

    def test_nested_cycles_restore(self) -> None:
        with new_cycle() as outer:
            with new_cycle() as inner:
                assert get_cycle_id() == inner
            assert get_cycle_id() == outer
        assert len(outer) == 6


class _Collect(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class TestPhaseTiming:
    """Startup phase timings."""

    @pytest.fixture
    def perf_records(self):
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.perf")
        handler = _Collect()
        old_level = logger.level
        logger.setLevel(logging.DEBUG)
        logger.addHandler(handler)
        yield handler.records
        logger.removeHandler(handler)
        logger.setLevel(old_level)

    @pytest.mark.asyncio
    async def test_fast_phase_is_debug(self, perf_records) -> None:
        async with log_timing_async("connect") as ctx:
            ctx["accounts"] = 2
        (record,) = perf_records
        assert record.levelno == logging.DEBUG
        assert record.data["operation"] == "connect"
        assert record.data["accounts"] == 2

    @pytest.mark.asyncio
    async def test_slow_phase_escalates(self, perf_records) -> None:
        async with log_timing_async("positions", warn_threshold_ms=0.0, error_threshold_ms=60_000.0):
            pass
        (record,) = perf_records
        assert record.levelno == logging.WARNING
