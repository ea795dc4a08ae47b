"""
Structured logging configuration.

Two output formats share one set of context keys (request fields plus the
warehouse / region / actor a service call was about):

    json      one JSON object per line, for log aggregation (production)
    readable  colored single line with ``key=value`` context (dev / tests)

``LOG_FORMAT`` picks the format explicitly; otherwise production gets JSON.
``LOG_LEVEL`` overrides the level (DEBUG in dev, INFO in production).
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Request fields set by the timing middleware.
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")

# Domain fields passed through ``extra=`` by services and the sync worker.
CONTEXT_FIELDS = ("actor", "warehouse_id", "region_id", "sync_state", "goodzon_id")

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "alembic.runtime.migration")


def record_context(record: logging.LogRecord, fields=REQUEST_FIELDS + CONTEXT_FIELDS) -> dict:
    """The ``extra=`` values present on ``record``, in ``fields`` order."""
    context = {}
    for key in fields:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message [12ms] warehouse_id=3 actor=ops``"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        color, reset = (self.COLORS.get(record.levelname, ""), self.RESET) if self.color else ("", "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{ts} {record.levelname:<8}{reset} {record.name}: {record.getMessage()}"

        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        context = record_context(record, CONTEXT_FIELDS)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _formatter(app) -> logging.Formatter:
    fmt = (app.config.get("LOG_FORMAT") or "").lower()
    if not fmt:
        is_prod = not app.config.get("DEBUG", False) and not app.config.get("TESTING", False)
        fmt = "json" if is_prod else "readable"
    if fmt == "json":
        return JSONFormatter()
    return ReadableFormatter(color=sys.stderr.isatty())


def configure_logging(app) -> None:
    """Install a single stderr handler on the root logger for ``app``."""
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = (app.config.get("LOG_LEVEL") or ("INFO" if is_prod else "DEBUG")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _formatter(app)

    # create_app runs once per test session and once per CLI call
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info(
            "Logging configured: level=%s format=%s", level_name, type(formatter).__name__
        )
