"""
Structured JSON logging for the GL kernel.

Every ledger log record is one JSON object per line.  The message is a
snake_case event name and the record carries the ledger identifiers it is
about::

    {"ts": "2024-06-15T12:00:00+00:00", "level": "INFO",
     "logger": "gl_kernel.services.journal", "message": "entry_posted",
     "actor_id": "clerk-7", "entry_id": "6f1c...", "entry_number": "JE-000042",
     "seq": 42, "entry_date": "2024-06-15", "period_id": "9a0e..."}

Field sources, in order of precedence:
    1. The record's ``extra`` fields.
    2. Identifiers bound with ``LogContext.bind`` (actor, entry, period).
    3. For records logged with ``exc_info``: ``exc_type``, ``exc_message``
       and, for ledger errors, ``error_code`` plus ``error_detail`` (the
       exception's structured attributes, e.g. ``period_name``).

Usage:
    from gl_kernel.logging_config import LogContext, configure_logging, get_logger

    configure_logging()                 # once, at application start
    logger = get_logger("services.journal")
    with LogContext.bind(entry_id=str(entry.id), actor_id=actor):
        logger.info("entry_posted", extra={"entry_number": entry.entry_number})
"""

__all__ = [
    "LOGGER_NAMESPACE",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, TextIO
from uuid import UUID

from gl_kernel.exceptions import GeneralLedgerError

LOGGER_NAMESPACE = "gl_kernel"


# ---------------------------------------------------------------------------
# Ledger identifiers bound to the current operation
# ---------------------------------------------------------------------------

_bound: ContextVar[dict[str, str] | None] = ContextVar("gl_kernel_log_context", default=None)


class LogContext:
    """
    Ledger identifiers attached to every record logged inside ``bind()``.

    Posting and reversal bind the entry and actor; period close binds the
    period and actor.  Nested binds add to the outer ones and restore them
    on exit.
    """

    FIELDS = ("actor_id", "entry_id", "period_id")

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_bound.get() or {})

    @classmethod
    def clear(cls) -> None:
        _bound.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[None]:
        """
        Bind identifiers for the duration of the block.

        Raises:
            ValueError: a field other than actor_id, entry_id or period_id.
        """
        unknown = sorted(set(fields) - set(cls.FIELDS))
        if unknown:
            raise ValueError(f"Unknown log context field(s): {', '.join(unknown)}")

        merged = cls.get_all()
        merged.update({key: str(value) for key, value in fields.items() if value is not None})
        token = _bound.set(merged)
        try:
            yield
        finally:
            _bound.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else on a record came from ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, GeneralLedgerError):
        fields["error_code"] = exc.code
        detail = {key: value for key, value in vars(exc).items() if not key.startswith("_")}
        if detail:
            fields["error_detail"] = detail
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; see the module docstring for the layout."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )

        if record.exc_info and record.exc_info[1] is not None:
            for key, value in _exception_fields(record.exc_info[1]).items():
                payload.setdefault(key, value)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_value)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the gl_kernel namespace, e.g. ``get_logger("ledger")``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Send gl_kernel records to ``handler`` (default: a stream handler on
    ``stream`` or stderr) as JSON lines.

    A no-op if the namespace already has its JSON handler; call
    ``reset_logging`` first to reconfigure.
    """
    namespace = logging.getLogger(LOGGER_NAMESPACE)
    if any(getattr(h, "_gl_kernel_handler", False) for h in namespace.handlers):
        return

    handler = handler or logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    handler._gl_kernel_handler = True
    namespace.addHandler(handler)
    namespace.setLevel(level)
    namespace.propagate = False


def reset_logging() -> None:
    """Remove the gl_kernel handler installed by ``configure_logging``.  Tests only."""
    namespace = logging.getLogger(LOGGER_NAMESPACE)
    for handler in list(namespace.handlers):
        if getattr(handler, "_gl_kernel_handler", False):
            namespace.removeHandler(handler)
    namespace.setLevel(logging.WARNING)
    namespace.propagate = True
