"""Request middleware: correlation ids and HTTP metrics."""
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .metrics import http_request_duration_seconds, http_requests_total

CORRELATION_HEADER = "X-Correlation-ID"


def _endpoint_label(request: Request) -> str:
    # Use the route template so per-slug paths do not explode label cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id to every log line emitted while serving a request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        start_time = time.time()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            endpoint = _endpoint_label(request)
            http_requests_total.labels(method=request.method, endpoint=endpoint, status=status_code).inc()
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(
                time.time() - start_time
            )
            structlog.contextvars.unbind_contextvars("correlation_id")
