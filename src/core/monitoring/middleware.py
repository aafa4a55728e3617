"""
Monitoring Middleware
=====================
Collects metrics and writes one structured log line per request
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.core.monitoring.metrics import UNMATCHED_ROUTE, metrics

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000
UNTRACKED_PATHS = ("/monitoring/health", "/monitoring/metrics")


def route_template(request: Request) -> str:
    """Path template of the matched route, UNMATCHED_ROUTE when nothing matched"""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Times every request, counts it and logs it with its correlation ID"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            route = route_template(request)
            metrics.track_request(route, request.method, elapsed_ms, status_code)

            logger.info(
                f"event=http_request method={request.method} path={request.url.path} "
                f"status={status_code} duration_ms={elapsed_ms:.2f} "
                f"correlationId={getattr(request.state, 'correlation_id', None)}"
            )
            if elapsed_ms > SLOW_REQUEST_MS:
                logger.warning(f"🐌 Slow request: {request.method} {route} took {elapsed_ms:.2f}ms")
