"""Structured logging configuration for the BuildTrack engine."""
import logging
import json
import os
import sys
from datetime import datetime, timezone
from typing import Mapping, Optional, TextIO

from buildtrack.config import ENV_LOG_FORMAT, ENV_LOG_LEVEL

PERF_LOGGER = "buildtrack.perf"

# Optional context fields copied from ``extra={...}`` onto the JSON entry.
_CONTEXT_FIELDS = ("project_id", "operation", "duration_ms")


class JSONFormatter(logging.Formatter):
    """One JSON object per line; engine context fields are added when set."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True, stream: Optional[TextIO] = None):
    """
    Configure logging for a process embedding the engine.

    Replaces the root handlers with a single stream handler (stdout by
    default). The per-call timing logger is only let through when the root
    level is DEBUG.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    perf_level = logging.WARNING if root.level > logging.DEBUG else logging.NOTSET
    logging.getLogger(PERF_LOGGER).setLevel(perf_level)
    return handler


def configure_logging_from_env(env: Optional[Mapping[str, str]] = None):
    """
    ``setup_logging`` driven by BUILDTRACK_LOG_LEVEL (default INFO) and
    BUILDTRACK_LOG_FORMAT ("json" unless set to "text").
    """
    if env is None:
        env = os.environ
    level = env.get(ENV_LOG_LEVEL) or "INFO"
    json_output = (env.get(ENV_LOG_FORMAT) or "json").strip().lower() != "text"
    return setup_logging(level=level.strip(), json_output=json_output)
