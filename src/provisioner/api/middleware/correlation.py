"""Correlation ID middleware for request tracing."""

from __future__ import annotations

import re
import time
import uuid
from contextvars import ContextVar

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


logger = structlog.get_logger(__name__)

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_HEADER = "X-Correlation-ID"

_VALID_CORRELATION_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def resolve_correlation_id(header_value: str | None) -> str:
    """Reuse the caller's ID when it is safe to log, otherwise mint one."""
    if header_value and _VALID_CORRELATION_ID.fullmatch(header_value):
        return header_value
    return uuid.uuid4().hex


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request, its response and its log lines with a correlation ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        token = correlation_id_ctx.set(correlation_id)
        started = time.perf_counter()
        try:
            with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
                response = await call_next(request)
                logger.info(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
        finally:
            correlation_id_ctx.reset(token)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def get_correlation_id() -> str:
    """Get the current correlation ID."""
    return correlation_id_ctx.get()
