"""
Request tracing for the two inbound webhooks.

Every request gets a correlation id: the caller's own id when it sends a
usable one (X-Correlation-ID, or the X-Request-Id some gateways and payment
providers add), else a fresh UUID4. The id is kept on request.state and in a
contextvar and echoed in X-Correlation-ID. Background jobs receive it
explicitly and re-install it, so a chat message or a PIX payment can be
followed from webhook to preview delivery in the logs.
"""

import logging
import re
import uuid
from collections.abc import Callable
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

HEADER_CORRELATION_ID = "X-Correlation-ID"
HEADER_REQUEST_ID = "X-Request-Id"
MAX_CORRELATION_ID_LENGTH = 128

# Ids are interpolated into log lines; anything else is replaced
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9._:\-]+$")

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id(request: Request | None = None) -> str | None:
    """
    Correlation ID for the current request.
    Prefers request.state, then the contextvar. None if neither is set.
    """
    if request is not None and getattr(request.state, "correlation_id", None):
        return request.state.correlation_id
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Install a correlation ID in the contextvar (background jobs call this first)."""
    _correlation_id_var.set(correlation_id)


def pick_correlation_id(request: Request) -> str:
    """First usable caller-supplied id, or a new UUID4."""
    for header in (HEADER_CORRELATION_ID, HEADER_REQUEST_ID):
        incoming = (request.headers.get(header) or "").strip()
        if not incoming:
            continue
        if len(incoming) <= MAX_CORRELATION_ID_LENGTH and _SAFE_ID_RE.match(incoming):
            return incoming
        logger.debug(f"Discarding unusable {header} header ({len(incoming)} chars)")
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        cid = pick_correlation_id(request)
        request.state.correlation_id = cid
        token = _correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id_var.reset(token)
        response.headers[HEADER_CORRELATION_ID] = cid
        return response
