"""
Structured JSON logging for the roster kernel.

Every record is one JSON line.  Fields passed through ``extra`` become
top-level keys; the project and period a computation is running for are
stamped on every record emitted inside ``LogContext.bind``.
"""

__all__ = [
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

_LOGGER_PREFIX = "roster_kernel"

_context: ContextVar[dict[str, str] | None] = ContextVar("roster_log_context", default=None)


class LogContext:
    """Computation-scoped fields, safe across worker threads."""

    FIELDS = ("project_id", "period")

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[None]:
        """Stamp ``fields`` on records inside the block; nested binds merge."""
        unknown = sorted(set(fields) - set(cls.FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
        merged = cls.get_all()
        merged.update({k: v for k, v in fields.items() if v is not None})
        token = _context.set(merged)
        try:
            yield
        finally:
            _context.reset(token)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get() or {})

    @classmethod
    def clear(cls) -> None:
        _context.set(None)


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    # Decimals as strings so amounts keep their exact scale
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
                # RosterKernelError subclasses keep their identifiers as attributes
                payload.update(
                    (f"exc_{k}", v) for k, v in vars(exc).items()
                    if not k.startswith("_") and k != "code"
                )
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the roster_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the roster_kernel logger (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    handler = handler or logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)


def reset_logging() -> None:
    """Drop handlers and allow ``configure_logging`` again. For tests."""
    global _configured
    with _lock:
        _configured = False
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
