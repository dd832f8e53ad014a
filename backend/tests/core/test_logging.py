"""
Tests for core/logging module

Formatters, context propagation, redaction and the LogTimer helper.
"""

import json
import logging
import sys

import pytest

from docreel.core.logging import (
    REDACTED,
    DevelopmentFormatter,
    LogTimer,
    StructuredFormatter,
    clear_context,
    get_logger,
    current_context,
    redact,
    set_job_id,
    set_request_id,
    set_session_id,
    setup_logging,
)


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test.module",
        level=level,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


class TestStructuredFormatter:
    def test_format_basic_log(self):
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Test message"
        assert parsed["logger"] == "test.module"
        assert parsed["timestamp"].endswith("Z")

    def test_extra_fields_and_context(self):
        set_request_id("req-123")
        record = _record()
        record.chunk_id = "chunk-1"

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["request_id"] == "req-123"
        assert parsed["extra"]["chunk_id"] == "chunk-1"

    def test_sensitive_values_redacted(self):
        record = _record()
        record.fal_key = "super-secret"
        record.headers = {"Authorization": "Bearer abc", "accept": "json"}

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["extra"]["fal_key"] == "***REDACTED***"
        assert parsed["extra"]["headers"]["Authorization"] == "***REDACTED***"
        assert parsed["extra"]["headers"]["accept"] == "json"

    def test_format_with_exception(self):
        try:
            raise ValueError("Test exception")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(StructuredFormatter().format(_record("Error occurred", logging.ERROR, exc_info)))

        assert parsed["exception"]["type"] == "ValueError"
        assert "Test exception" in parsed["exception"]["traceback"]


class TestDevelopmentFormatter:
    def test_includes_message_and_context(self):
        set_job_id("abcdef123456")
        result = DevelopmentFormatter().format(_record())

        assert "Test message" in result
        assert "job:abcdef12" in result


class TestContext:
    def test_set_and_clear(self):
        set_request_id("r")
        set_session_id("s")
        set_job_id("j")
        assert current_context() == {"request_id": "r", "session_id": "s", "job_id": "j"}

        set_session_id("")
        assert "session_id" not in current_context()

        clear_context()
        assert current_context() == {}

    def test_adapter_merges_bound_and_call_extra(self, caplog):
        logger = get_logger("docreel.test", component="tests")
        with caplog.at_level(logging.INFO, logger="docreel.test"):
            logger.info("hello", extra={"session_id": "s-1"})

        record = caplog.records[-1]
        assert record.component == "tests"
        assert record.session_id == "s-1"


class TestSetupLogging:
    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(level="DEBUG", log_file=log_file)
        try:
            logging.getLogger("docreel.file").info("to file", extra={"export_id": "e1"})
            for handler in logging.getLogger().handlers:
                handler.flush()

            line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
            parsed = json.loads(line)
            assert parsed["message"] == "to file"
            assert parsed["extra"]["export_id"] == "e1"
        finally:
            setup_logging(level="INFO")


class TestLogTimer:
    def test_success_logs_duration(self, caplog):
        logger = logging.getLogger("docreel.timer")
        with caplog.at_level(logging.INFO, logger="docreel.timer"):
            with LogTimer(logger, "concatenate"):
                pass

        messages = [r.getMessage() for r in caplog.records]
        assert "Starting: concatenate" in messages
        assert "Completed: concatenate" in messages
        assert caplog.records[-1].duration_seconds >= 0

    def test_failure_logs_error(self, caplog):
        logger = logging.getLogger("docreel.timer")
        with caplog.at_level(logging.INFO, logger="docreel.timer"):
            with pytest.raises(RuntimeError):
                with LogTimer(logger, "fetch"):
                    raise RuntimeError("boom")

        assert caplog.records[-1].levelname == "ERROR"
        assert caplog.records[-1].error == "boom"


def test_redact_nested_values():
    payload = {"options": {"api_key": "k", "volume": 0.2}, "tokens": ["a", "b"], "name": "x"}
    assert redact(payload) == {
        "options": {"api_key": REDACTED, "volume": 0.2},
        "tokens": [REDACTED, REDACTED],
        "name": "x",
    }
