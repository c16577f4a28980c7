"""Custom logging handlers for consultation workflows."""
from __future__ import annotations

import logging
from typing import Any, Dict

STANDARD_LOG_RECORD_ATTRS = {
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


class DatabaseLogHandler(logging.Handler):
    """Persist log records to the ``LogEntry`` table."""

    def emit(self, record: logging.LogRecord) -> None:
        from .models import LogEntry

        try:
            LogEntry.objects.create(
                logger_name=record.name,
                level=record.levelname.upper(),
                message=record.getMessage(),
                context=self._build_context(record),
            )
        except Exception:  # logging must never break the request
            self.handleError(record)

    def _build_context(self, record: logging.LogRecord) -> Dict[str, Any] | None:
        provided = getattr(record, "context", None)
        context: Dict[str, Any] = {}
        if isinstance(provided, dict):
            context.update(self._serialise_mapping(provided))

        for key, value in record.__dict__.items():
            if key in STANDARD_LOG_RECORD_ATTRS or key == "context":
                continue
            if key.startswith("_"):
                continue
            context[key] = self._serialise(value)

        return context or None

    def _serialise(self, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, dict):
            return self._serialise_mapping(value)
        if isinstance(value, (list, tuple, set)):
            return [self._serialise(item) for item in value]
        if hasattr(value, "pk"):
            return str(value.pk)
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    def _serialise_mapping(self, mapping: Dict[str, Any]) -> Dict[str, Any]:
        return {str(key): self._serialise(value) for key, value in mapping.items()}


__all__ = ["DatabaseLogHandler"]
