"""
Core middleware for request observability.

`RequestIDLogMiddleware`
------------------------
- Reads `X-Request-ID` (or generates one) and reflects it in the response.
- Stores the id in a contextvar so `core.logging.RequestIDFilter` can stamp it on
  every record emitted while the request runs (including permission traces).
- Logs one structured line per request on `taskboard.request`, with latency and
  the acting principal: a user id, or `share:<id>` for link-share bearers.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from django.http import HttpRequest, HttpResponse

from .logging import request_id_var

logger = logging.getLogger("taskboard.request")

# Allow simple, safe request-id tokens coming from clients
_ALLOWED_CHARS = re.compile(r"^[A-Za-z0-9._\-]{1,200}$")


def _coerce_request_id(raw: str | None) -> str:
    """Return the client-provided request id if safe, else a fresh uuid4 hex."""
    if raw and _ALLOWED_CHARS.match(raw):
        return raw
    return uuid.uuid4().hex


def _principal_label(request: HttpRequest) -> str | None:
    """Best-effort principal label without touching the database."""
    # DRF authenticators stash the link share on the Django request.
    share_id = getattr(request, "link_share_id", None)
    if share_id is not None:
        return f"share:{share_id}"
    user = getattr(request, "user", None)
    if getattr(user, "is_authenticated", False):
        return str(user.id)
    return None


class RequestIDLogMiddleware:
    """Attach a request id, time the request, and log a single summary line."""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        rid = _coerce_request_id(request.headers.get("X-Request-ID"))
        setattr(request, "request_id", rid)
        token = request_id_var.set(rid)

        start = time.perf_counter()
        try:
            response = self.get_response(request)
            duration_ms = int((time.perf_counter() - start) * 1000)

            response.headers["X-Request-ID"] = rid
            logger.info(
                "request",
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": request.path,
                    "status": getattr(response, "status_code", 0),
                    "user_id": _principal_label(request),
                    "duration_ms": duration_ms,
                },
            )
        finally:
            request_id_var.reset(token)
        return response
