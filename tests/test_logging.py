"""Tests for logging setup."""

import json
import logging
import sys

from container_metrics.utils.logging import JsonFormatter, get_logger, setup_logging


def make_record(msg: str, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="container_metrics.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_format(self):
        data = json.loads(JsonFormatter().format(make_record("Get stats failed")))

        assert data["level"] == "WARNING"
        assert data["logger"] == "container_metrics.test"
        assert data["message"] == "Get stats failed"
        assert data["thread"]
        assert data["timestamp"].endswith("+00:00")
        assert "exception" not in data

    def test_format_exception(self):
        try:
            raise ValueError("bad window")
        except ValueError:
            record = make_record("failed", exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: bad window" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_logs_to_file(self, tmp_path, root_logging):
        log_file = tmp_path / "logs" / "collector.log"

        setup_logging(level="DEBUG", log_file=log_file, json_format=True)
        get_logger("container_metrics.test").debug("sampling eth0")
        for handler in root_logging.handlers:
            handler.flush()

        assert root_logging.level == logging.DEBUG
        assert any(isinstance(h.formatter, JsonFormatter) for h in root_logging.handlers)
        assert "sampling eth0" in log_file.read_text()
