from __future__ import annotations

import time
from collections.abc import Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_COUNTER = Counter(
    "woodland_request_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "woodland_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
)
UPLOAD_COUNTER = Counter(
    "woodland_uploads_total",
    "Uploaded files by feature and outcome",
    ["feature", "outcome"],
)
DOWNLOAD_COUNTER = Counter(
    "woodland_downloads_total",
    "Attachment downloads by feature",
    ["feature"],
)
RATE_LIMIT_COUNTER = Counter(
    "woodland_rate_limited_total",
    "Requests rejected by a rate-limit policy",
    ["policy"],
)
CSRF_FAILURE_COUNTER = Counter(
    "woodland_csrf_failures_total",
    "Unsafe requests refused for a missing or mismatched CSRF token",
)
LOGIN_COUNTER = Counter(
    "woodland_logins_total",
    "Login attempts by outcome",
    ["outcome"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        route = request.scope.get("route")
        # Unmatched paths collapse into one label to keep cardinality bounded.
        path_template = getattr(route, "path", "unmatched")
        REQUEST_COUNTER.labels(
            request.method, path_template, response.status_code
        ).inc()
        REQUEST_LATENCY.labels(request.method, path_template).observe(duration)
        return response


def metrics_response() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
