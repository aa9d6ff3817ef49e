"""Prometheus metrics for HTTP requests."""

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

UNMATCHED_PATH = "<unmatched>"

REQUESTS_RECEIVED = Counter(
    "memebase_http_requests_received_total",
    "Total HTTP requests received",
)

REQUESTS_IN_PROGRESS = Gauge(
    "memebase_http_requests_in_progress",
    "HTTP requests currently being processed",
)

RESPONSE_COUNT = Counter(
    "memebase_http_responses_total",
    "Total HTTP responses sent",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "memebase_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 6.0],
)


def route_path(request: Request) -> str:
    """Route template such as ``/v1/memes/{id}``, keeping label cardinality bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_PATH)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for collecting HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and collect metrics.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            The response from the next middleware or route handler
        """
        REQUESTS_RECEIVED.inc()
        REQUESTS_IN_PROGRESS.inc()
        start_time = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            path = route_path(request)
            REQUESTS_IN_PROGRESS.dec()
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(
                time.perf_counter() - start_time
            )
            RESPONSE_COUNT.labels(method=request.method, path=path, status=str(status)).inc()
