"""
Tests for logging utilities and configuration.
"""

import json
import logging

import pytest

from mapstyler.core.logging_config import (
    ColoredFormatter,
    JSONFormatter,
    LogContext,
    add_log_context,
    get_log_level,
    setup_logging,
)
from mapstyler.utils.logging import PerformanceTimer, log_performance


def _record(msg: str = "Test", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="mapstyler.test",
        level=level,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Tests for logging configuration."""

    def test_get_log_level(self) -> None:
        """Test log level name conversion."""
        assert get_log_level("DEBUG") == logging.DEBUG
        assert get_log_level("WARNING") == logging.WARNING
        assert get_log_level("invalid") == logging.INFO

    def test_get_log_level_case_insensitive(self) -> None:
        """Test log level is case insensitive."""
        assert get_log_level("debug") == logging.DEBUG
        assert get_log_level("ErRoR") == logging.ERROR

    def test_setup_logging_console_only(self, restore_root_logger) -> None:
        """Test logging setup with console handler only."""
        setup_logging(log_level="DEBUG", enable_console=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("pyproj").level == logging.WARNING

    def test_setup_logging_json_file(self, tmp_path, restore_root_logger) -> None:
        """File logging writes JSON lines with extra fields."""
        log_file = tmp_path / "logs" / "mapstyler.log"
        setup_logging(log_level="INFO", log_file=log_file, json_logs=True, enable_console=False)

        logging.getLogger("mapstyler.test").warning("Rule skipped", extra={"rule_index": 3})
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        data = json.loads(lines[-1])
        assert data["message"] == "Rule skipped"
        assert data["rule_index"] == 3

    def test_log_context(self) -> None:
        """Test LogContext context manager."""
        old_factory = logging.getLogRecordFactory()

        with LogContext(source_id="parcels"):
            record = logging.getLogRecordFactory()(
                "test", logging.INFO, "", 0, "msg", (), None
            )
            assert record.source_id == "parcels"

        assert logging.getLogRecordFactory() == old_factory

    def test_add_log_context(self) -> None:
        """Test add_log_context helper function."""
        assert isinstance(add_log_context(source_id="x"), LogContext)


class TestFormatters:
    """Tests for log formatters."""

    def test_json_formatter_basic(self) -> None:
        """Test JSON formatter with basic record."""
        data = json.loads(JSONFormatter().format(_record("Test message")))

        assert data["level"] == "INFO"
        assert data["logger"] == "mapstyler.test"
        assert data["message"] == "Test message"
        assert data["line"] == 42

    def test_json_formatter_with_extra_fields(self) -> None:
        """Extra fields become top-level keys."""
        record = _record()
        record.source_crs = "EPSG:3857"
        record.duration_ms = 12.5

        data = json.loads(JSONFormatter().format(record))
        assert data["source_crs"] == "EPSG:3857"
        assert data["duration_ms"] == 12.5

    def test_colored_formatter_restores_levelname(self) -> None:
        """The record is left as it was for other handlers."""
        record = _record(level=logging.WARNING)
        formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

        assert "\033[33mWARNING" in formatted
        assert record.levelname == "WARNING"


class TestPerformanceLogging:
    """Tests for timing helpers."""

    def test_log_performance(self, caplog) -> None:
        """Durations are logged with the function name."""

        @log_performance(log_level=logging.INFO)
        def work(x):
            return x * 2

        with caplog.at_level(logging.INFO, logger="mapstyler.utils.logging"):
            assert work(2) == 4

        assert "work executed in" in caplog.text
        assert caplog.records[-1].duration_ms >= 0

    def test_log_performance_threshold(self, caplog) -> None:
        """Fast calls below the threshold are not logged."""

        @log_performance(log_level=logging.INFO, threshold_ms=60_000)
        def work():
            return 1

        with caplog.at_level(logging.INFO, logger="mapstyler.utils.logging"):
            work()
        assert caplog.records == []

    def test_log_performance_on_error(self, caplog) -> None:
        """Failing calls are timed and re-raised."""

        @log_performance(log_level=logging.INFO)
        def fail():
            raise ValueError("boom")

        with caplog.at_level(logging.INFO, logger="mapstyler.utils.logging"):
            with pytest.raises(ValueError):
                fail()
        assert "fail executed in" in caplog.text

    def test_performance_timer(self, caplog) -> None:
        """The timer records its duration."""
        with caplog.at_level(logging.DEBUG, logger="mapstyler.utils.logging"):
            with PerformanceTimer("reproject EPSG:3857 -> EPSG:4326") as timer:
                sum(range(100))

        assert timer.duration_ms is not None
        assert "reproject EPSG:3857 -> EPSG:4326 completed" in caplog.text
