"""Tests for logging setup and formatters."""

import json
import logging

import pytest

from gphotos_migrate.common import LogContext, setup_logging
from gphotos_migrate.common.logging import SimpleFormatter, StructuredFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


class TestStructuredFormatter:
    """Tests for the JSON formatter."""

    def test_outputs_json_with_core_fields(self):
        data = json.loads(StructuredFormatter().format(_record("hello")))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert "timestamp" in data

    def test_includes_extra_fields(self):
        record = _record("hello")
        record.extra_fields = {"google_dir": "/takeout"}
        data = json.loads(StructuredFormatter().format(record))
        assert data["google_dir"] == "/takeout"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_handler_and_level(self):
        setup_logging(level="WARNING", format="simple")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, SimpleFormatter)

    def test_log_file_is_json(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(level="INFO", format="simple", log_file=log_file)

        logging.getLogger("gphotos_migrate.test").info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "to file"


class TestLogContext:
    """Tests for LogContext."""

    def test_fields_added_inside_block_only(self):
        logger = logging.getLogger("gphotos_migrate.ctx")
        factory = logging.getLogRecordFactory()

        with LogContext(logger, run="r1"):
            inside = logging.getLogRecordFactory()("n", logging.INFO, __file__, 1, "m", None, None)

        outside = logging.getLogRecordFactory()("n", logging.INFO, __file__, 1, "m", None, None)

        assert inside.extra_fields == {"run": "r1"}
        assert not hasattr(outside, "extra_fields")
        assert logging.getLogRecordFactory() is factory
