"""Structured logging for nasiya.

Records carry a ledger context (acting employee, request, background job)
set with :func:`ledger_context`. The standard format prints it as
``[key=value]`` tags; the JSON format merges it into the object.
"""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(ledger_tags)s%(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("uvicorn.access", "faker")

_ledger_context: ContextVar[dict[str, Any]] = ContextVar("ledger_context", default={})


@contextmanager
def ledger_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Tag every record logged inside the block with ``fields``.

    Blocks nest; inner fields override outer ones. ``None`` values are
    dropped.
    """
    merged = {**_ledger_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _ledger_context.set(merged)
    try:
        yield merged
    finally:
        _ledger_context.reset(token)


def current_ledger_context() -> dict[str, Any]:
    return dict(_ledger_context.get())


class LedgerContextFilter(logging.Filter):
    """Copy the active ledger context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _ledger_context.get()
        record.ledger = dict(context)
        record.ledger_tags = "".join(f"[{key}={value}] " for key, value in context.items())
        return True


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
) -> None:
    """Install one stdout handler on the root logger.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        "standard" for tagged text lines or "json" for one object per line.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    handler.addFilter(LedgerContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger("nasiya").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, ledger context included."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(getattr(record, "ledger", {}))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Per-call fields passed via ``extra={"extra": {...}}``
        if hasattr(record, "extra"):
            log_data.update(record.extra)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (usually ``__name__``)."""
    return logging.getLogger(name)
