"""
Unit tests for utils.logging

Covers JSON and console formatting, context logging and handler setup.
"""

import json
import logging
import os
import sys
import tempfile
from unittest.mock import patch

import pytest

from utils.logging import (
    ConsoleFormatter,
    ContextLogger,
    JSONFormatter,
    setup_logging,
    shutdown_logging,
)


def make_record(msg="Processing batch", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="reingest.worker",
        level=level,
        pathname="/app/reingest/worker.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    record.threadName = "reingest_0"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after a setup_logging call."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    shutdown_logging()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    """Test JSONFormatter class"""

    def test_init_with_defaults(self):
        formatter = JSONFormatter()

        assert formatter.include_timestamp is True
        assert formatter.include_hostname is True
        assert formatter.app_name == "evergreen-reingest"
        assert formatter.hostname is not None

    def test_init_without_hostname(self):
        formatter = JSONFormatter(include_hostname=False)

        assert formatter.hostname is None

    def test_format_basic_record(self):
        """Test formatting a basic log record"""
        output = json.loads(JSONFormatter().format(make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "reingest.worker"
        assert output["message"] == "Processing batch"
        assert output["app"] == "evergreen-reingest"
        assert output["thread"] == "reingest_0"
        assert "timestamp" in output
        assert "hostname" in output
        assert "context" not in output

    def test_format_without_timestamp_or_hostname(self):
        formatter = JSONFormatter(include_timestamp=False, include_hostname=False)

        output = json.loads(formatter.format(make_record()))

        assert "timestamp" not in output
        assert "hostname" not in output

    def test_format_includes_extra_context(self):
        record = make_record(batch_number=7, record_id=12345, phase="attributes")

        output = json.loads(JSONFormatter().format(record))

        assert output["context"] == {
            "batch_number": 7,
            "record_id": 12345,
            "phase": "attributes",
        }

    def test_format_with_exception(self):
        try:
            raise ValueError("bad record")
        except ValueError:
            record = make_record(level=logging.ERROR, exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "bad record"
        assert any("ValueError" in line for line in output["exception"]["traceback"])

    def test_format_non_serializable_extra(self):
        output = json.loads(JSONFormatter().format(make_record(payload=object())))

        assert "object" in output["context"]["payload"]


class TestConsoleFormatter:
    """Test ConsoleFormatter class"""

    def test_colors_disabled_without_tty(self):
        with patch.object(sys.stderr, "isatty", return_value=False):
            formatter = ConsoleFormatter(use_colors=True)

        assert formatter.use_colors is False

    def test_format_includes_thread_and_context(self):
        formatter = ConsoleFormatter(use_colors=False)

        output = formatter.format(make_record(batch_number=3))

        assert "[INFO]" in output
        assert "reingest_0" in output
        assert "Processing batch" in output
        assert output.endswith("[batch_number=3]")

    def test_format_restores_levelname(self):
        with patch.object(sys.stderr, "isatty", return_value=True):
            formatter = ConsoleFormatter(use_colors=True)
        record = make_record(level=logging.WARNING)

        output = formatter.format(record)

        assert "\033[33m" in output
        assert record.levelname == "WARNING"


class TestContextLogger:
    """Test ContextLogger class"""

    def test_context_added_to_records(self, caplog):
        log = ContextLogger("reingest.test", batch_number=5)

        with caplog.at_level(logging.INFO, logger="reingest.test"):
            log.info("Thread reingest_0 processing 2 records")

        record = caplog.records[0]
        assert record.batch_number == 5
        assert record.getMessage() == "Thread reingest_0 processing 2 records"

    def test_call_kwargs_merged_with_context(self, caplog):
        log = ContextLogger("reingest.test", batch_number=5)

        log.error("Error processing record: 9 boom", record_id=9, phase="browse")

        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert (record.batch_number, record.record_id, record.phase) == (5, 9, "browse")

    def test_bind_returns_child_with_extra_context(self):
        log = ContextLogger("reingest.test", batch_number=5)

        child = log.bind(worker="reingest_1")

        assert child.context == {"batch_number": 5, "worker": "reingest_1"}
        assert child.logger is log.logger
        assert log.context == {"batch_number": 5}

    def test_bound_context_overrides_parent(self, caplog):
        log = ContextLogger("reingest.test", batch_number=5, phase="attributes")

        log.bind(phase="browse").warning("Cannot prepare browse reingest statement")

        record = caplog.records[0]
        assert (record.batch_number, record.phase) == (5, "browse")


class TestSetupLogging:
    """Test setup_logging()"""

    def test_sets_level_and_console_handler(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_lowercase_and_unknown_levels(self, restore_root_logger):
        setup_logging(level="warning")
        assert restore_root_logger.level == logging.WARNING

        setup_logging(level="chatty")
        assert restore_root_logger.level == logging.INFO

    def test_json_console(self, restore_root_logger):
        setup_logging(json_format=True)

        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_file_handler_creates_directory(self, restore_root_logger):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = os.path.join(tmp, "logs", "reingest.log")

            setup_logging(log_file=log_file, console_output=False)
            logging.getLogger("reingest.test").info("written to file")
            shutdown_logging()

            with open(log_file, encoding="utf-8") as f:
                assert "written to file" in f.read()

    def test_replaces_existing_handlers(self, restore_root_logger):
        setup_logging()
        setup_logging()

        assert len(restore_root_logger.handlers) == 1

