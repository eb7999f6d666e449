"""
Request logging and HTTP metrics middleware.

Tracks in-flight requests, observes latency per method/path, counts responses
per method/path/status and writes one structured log line per request.
"""

from __future__ import annotations

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from book_api.metrics import ApiMetrics

logger = structlog.get_logger()


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, metrics: ApiMetrics, skip_paths: tuple[str, ...] = ("/metrics",)):
        super().__init__(app)
        self.metrics = metrics
        self.skip_paths = skip_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start = time.perf_counter()
        # Reported when the inner stack raises instead of answering
        status_code = 500
        self.metrics.http_requests_in_flight.inc()
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self.metrics.http_requests_in_flight.dec()
            duration = time.perf_counter() - start

            method = request.method
            endpoint = request.url.path
            self.metrics.http_request_duration.labels(
                method=method,
                endpoint=endpoint,
            ).observe(duration)
            self.metrics.http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=str(status_code),
            ).inc()

            uri = endpoint
            if request.url.query:
                uri = f"{endpoint}?{request.url.query}"
            logger.info(
                "http_request",
                method=method,
                uri=uri,
                status=status_code,
                duration_ms=round(duration * 1000, 3),
            )
