"""
test_logging_config.py — JSON formatter, setup_logging and the @timed decorator.
"""

import io
import json
import logging
import sys

import pytest

from buildtrack.config import ENV_LOG_FORMAT, ENV_LOG_LEVEL
from buildtrack.services.logging_config import JSONFormatter, configure_logging_from_env, setup_logging
from buildtrack.services.perf_monitor import timed


def _record(msg="hello", **extra):
    record = logging.LogRecord("buildtrack-cost", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_core_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "buildtrack-cost"
        assert entry["message"] == "hello"
        assert "timestamp" in entry

    def test_context_fields(self):
        entry = json.loads(JSONFormatter().format(_record(project_id="p-001", duration_ms=1.25)))
        assert entry["project_id"] == "p-001"
        assert entry["duration_ms"] == 1.25

    def test_unset_context_fields_omitted(self):
        entry = json.loads(JSONFormatter().format(_record(project_id=None)))
        assert "project_id" not in entry
        assert "duration_ms" not in entry

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def _restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)
        logging.getLogger("buildtrack.perf").setLevel(logging.NOTSET)

    def test_json_handler(self):
        setup_logging("debug", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("buildtrack.perf").level == logging.NOTSET

    def test_text_handler_quiets_perf_logger(self):
        setup_logging("INFO", json_output=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("buildtrack.perf").level == logging.WARNING

    def test_writes_to_given_stream(self):
        stream = io.StringIO()
        setup_logging("INFO", json_output=True, stream=stream)
        logging.getLogger("buildtrack-report").info("summary built", extra={"project_id": "p-001"})
        entry = json.loads(stream.getvalue().splitlines()[-1])
        assert entry["message"] == "summary built"
        assert entry["project_id"] == "p-001"

    def test_from_env_defaults(self):
        handler = configure_logging_from_env({})
        assert logging.getLogger().level == logging.INFO
        assert isinstance(handler.formatter, JSONFormatter)

    def test_from_env_text_debug(self):
        handler = configure_logging_from_env({ENV_LOG_LEVEL: " debug ", ENV_LOG_FORMAT: "TEXT"})
        assert logging.getLogger().level == logging.DEBUG
        assert not isinstance(handler.formatter, JSONFormatter)
        assert logging.getLogger("buildtrack.perf").level == logging.NOTSET


class TestTimed:

    def test_logs_duration_and_returns_result(self, caplog):
        @timed
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG, logger="buildtrack.perf"):
            assert add(2, 3) == 5
        records = [r for r in caplog.records if r.name == "buildtrack.perf"]
        assert records
        assert records[0].duration_ms >= 0
        assert records[0].operation.endswith("add")

    def test_preserves_metadata(self):
        @timed
        def compute():
            """Docstring."""

        assert compute.__name__ == "compute"
        assert compute.__doc__ == "Docstring."
