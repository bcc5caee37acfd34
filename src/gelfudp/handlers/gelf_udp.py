"""stdlib ``logging`` handler forwarding records through a GraylogClient."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..core.levels import from_logging_level
from ..transport.client import GraylogClient

__all__ = ["GELFUDPHandler"]

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class GELFUDPHandler(logging.Handler):
    """Handler that hands each record to :meth:`GraylogClient.submit`.

    The client must already be bound to its event loop. Records can be emitted
    from any thread; the actual send always runs on the client's loop.
    """

    def __init__(self, client: GraylogClient, level: int = logging.NOTSET, *, facility: str | None = None) -> None:
        super().__init__(level)
        self.client = client
        self.facility = facility

    def record_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "short_message": record.getMessage(),
            "timestamp": record.created,
            "level": int(from_logging_level(record.levelno)),
            "file": record.pathname,
            "line": record.lineno,
            "_logger": record.name,
            "_function": record.funcName,
            "_thread": record.threadName,
        }
        if self.facility:
            fields["facility"] = self.facility
        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            fields["full_message"] = formatter.formatException(record.exc_info)
        elif record.stack_info:
            fields["full_message"] = record.stack_info
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                fields[key] = value
        return fields

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.client.submit(self.record_fields(record))
        except Exception:
            self.handleError(record)
