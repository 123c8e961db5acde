"""
Tests for logging utilities and configuration.
"""

import json
import logging
import sys
from pathlib import Path

import pytest

from drainsketch.core.logging_config import (
    ColoredFormatter,
    JSONFormatter,
    LogContext,
    get_log_level,
    setup_logging,
)
from drainsketch.utils.logging import REDACTED, log_async_performance, redact_sensitive


def make_record(msg: str = "Test", name: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Tests for logging configuration."""

    def test_get_log_level(self):
        assert get_log_level("DEBUG") == logging.DEBUG
        assert get_log_level("warning") == logging.WARNING
        assert get_log_level("invalid") == logging.INFO

    def test_setup_logging_console_only(self, restore_root_logger):
        setup_logging(log_level="DEBUG", enable_console=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) >= 1

    def test_setup_logging_json_file(self, restore_root_logger, tmp_path: Path):
        log_file = tmp_path / "logs" / "drainsketch.log"
        setup_logging(log_level="INFO", log_file=log_file, json_logs=True, enable_console=False)

        logging.getLogger("drainsketch.test").info("Saved project", extra={"project_id": "p-1"})
        for handler in restore_root_logger.handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        entry = json.loads(lines[-1])
        assert entry["message"] == "Saved project"
        assert entry["project_id"] == "p-1"

    def test_log_context(self):
        """Test LogContext stamps fields on records and restores the factory."""
        old_factory = logging.getLogRecordFactory()

        with LogContext(project_id="abc", feature_id="hydroblox-run-1"):
            record = logging.getLogRecordFactory()(
                "test", logging.INFO, "", 0, "test", (), None
            )
            assert record.project_id == "abc"
            assert record.feature_id == "hydroblox-run-1"

        assert logging.getLogRecordFactory() == old_factory


class TestFormatters:
    """Tests for the JSON and coloured formatters."""

    def test_json_formatter_basic(self):
        data = json.loads(JSONFormatter().format(make_record("Test message", "test.module")))

        assert data["level"] == "INFO"
        assert data["logger"] == "test.module"
        assert data["message"] == "Test message"
        assert data["line"] == 42

    def test_json_formatter_with_extra_fields(self):
        record = make_record()
        record.project_id = "123"
        record.duration_ms = 45.67

        data = json.loads(JSONFormatter().format(record))

        assert data["project_id"] == "123"
        assert data["duration_ms"] == 45.67

    def test_json_formatter_with_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("test", logging.ERROR, "", 0, "Failed", (), sys.exc_info())

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]

    def test_colored_formatter_restores_levelname(self):
        record = make_record()
        formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

        assert "\033[32m" in formatted
        assert record.levelname == "INFO"


class TestRedactSensitive:
    """Tests for sensitive data redaction."""

    def test_redact_dict_fields(self):
        data = {"access_token": "pk.secret", "country": "US", "nested": {"password": "hunter2"}}

        redacted = redact_sensitive(data)

        assert redacted["access_token"] == REDACTED
        assert redacted["country"] == "US"
        assert redacted["nested"]["password"] == REDACTED

    def test_redact_url_query(self):
        url = "https://api.mapbox.com/geocoding/v5/mapbox.places/a.json?access_token=pk.123&country=US"

        redacted = redact_sensitive(url)

        assert "pk.123" not in redacted
        assert redacted.endswith(f"access_token={REDACTED}&country=US")

    def test_redact_list(self):
        redacted = redact_sensitive([{"token": "t"}, "plain"])
        assert redacted == [{"token": REDACTED}, "plain"]

    def test_non_string_values_untouched(self):
        assert redact_sensitive(42) == 42
        assert redact_sensitive(None) is None


@pytest.mark.asyncio
class TestLogAsyncPerformance:
    """Tests for the async timing decorator."""

    async def test_logs_duration(self, caplog):
        @log_async_performance(log_level=logging.INFO)
        async def work() -> str:
            return "done"

        with caplog.at_level(logging.INFO, logger="drainsketch.utils.logging"):
            assert await work() == "done"

        assert any("executed in" in r.getMessage() for r in caplog.records)

    async def test_threshold_suppresses_fast_calls(self, caplog):
        @log_async_performance(log_level=logging.INFO, threshold_ms=10_000)
        async def work() -> None:
            return None

        with caplog.at_level(logging.INFO, logger="drainsketch.utils.logging"):
            await work()

        assert not any("executed in" in r.getMessage() for r in caplog.records)

    async def test_exceptions_propagate(self):
        @log_async_performance()
        async def fail() -> None:
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            await fail()
