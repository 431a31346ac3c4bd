"""Tests for logging formatters and setup."""

import json
import logging

import pytest

from connector.utils.logging import JSONFormatter, TextFormatter, setup_logging


def _make_record(msg="Posted check %s", args=("jarvis:lint-abc",), **extra):
    record = logging.LogRecord(
        name="connector.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "connector.test"
        assert data["message"] == "Posted check jarvis:lint-abc"
        assert data["timestamp"].endswith("Z")
        assert "thread" in data

    def test_extras_in_context(self):
        data = json.loads(JSONFormatter().format(_make_record(change=42, opaque=object())))
        assert data["context"]["change"] == 42
        assert isinstance(data["context"]["opaque"], str)

    def test_extras_disabled(self):
        data = json.loads(JSONFormatter(include_extras=False).format(_make_record(change=42)))
        assert "context" not in data


class TestTextFormatter:

    def test_includes_extras(self):
        line = TextFormatter().format(_make_record(change=42))
        assert "INFO" in line
        assert "Posted check jarvis:lint-abc" in line
        assert line.endswith("| change=42")


class TestSetupLogging:

    def test_console_handler(self, restore_root_logger):
        setup_logging(level="WARNING")
        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_debug_enables_http_logging(self, restore_root_logger):
        setup_logging(level="DEBUG", format="json")
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "connector.log"
        setup_logging(file=log_file)
        assert len(restore_root_logger.handlers) == 2
        assert log_file.parent.is_dir()
        for handler in restore_root_logger.handlers[1:]:
            handler.close()
