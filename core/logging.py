"""
Logging helpers for request-scoped correlation.

Overview
--------
- `request_id_var` is a `contextvars.ContextVar` holding the current request id
  for the lifetime of the request (set by `core.middleware.RequestIDLogMiddleware`).
- `RequestIDFilter` copies it onto every `LogRecord` so formatters using
  `%(request_id)s` work for permission traces and grant-service logs as well as
  for the request line itself.

Usage
-----
- Attach the filter to handlers in Django LOGGING settings. A dash `"-"` is used
  when no request id is bound (management commands, shell, tests).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDFilter(logging.Filter):
    """Ensure `%(request_id)s` is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True
