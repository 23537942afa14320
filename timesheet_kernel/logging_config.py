"""
Structured JSON logging for the timesheet kernel.

Every record under the ``timesheet_kernel`` logger is written as one JSON
object per line:

    {"ts": ..., "level": ..., "logger": ..., "message": "timesheet_saved",
     "actor_id": ..., "project_id": ..., "entry_count": 5, ...}

Messages are snake_case event names.  Request-scoped identifiers come from
``LogContext`` (contextvars, so safe across threads and tasks); per-event
data comes from ``extra=``.  When a record carries an exception, its type,
message, ``code`` and public attributes are flattened into ``exc_*`` keys.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

ROOT_LOGGER_NAME = "timesheet_kernel"

CONTEXT_FIELDS = (
    "correlation_id",
    "actor_id",
    "organization_id",
    "project_id",
    "timesheet_id",
)

_context: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"timesheet_log_{name}", default=None) for name in CONTEXT_FIELDS
}


class LogContext:
    """Request-scoped fields stamped onto every record."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Set the given fields; None values are left untouched."""
        for name, value in fields.items():
            if name not in _context:
                raise TypeError(f"Unknown log context field: {name}")
            if value is not None:
                _context[name].set(str(value))

    @staticmethod
    def get_all() -> dict[str, str]:
        return {
            name: var.get() for name, var in _context.items() if var.get() is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them.

        Unknown names and None values are ignored.
        """
        tokens = [
            (_context[name], _context[name].set(str(value)))
            for name, value in fields.items()
            if name in _context and value is not None
        ]
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord has; anything else on a record came from extra=.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "taskName",
}


def _json_default(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RESERVED:
                payload.setdefault(name, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger ``timesheet_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the kernel logger.  Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    if handler is None:
        handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)


def reset_logging() -> None:
    """Remove the kernel handlers and allow ``configure_logging`` again.  Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
