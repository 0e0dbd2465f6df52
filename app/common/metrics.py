"""Prometheus HTTP metrics: request counter and latency histogram."""

from __future__ import annotations

from typing import Tuple

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request
from starlette.routing import Match

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status"],
)
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

UNMATCHED_PATH = "unmatched"


def route_template(request: Request) -> str:
    """Route path (``/api/code/execute``) rather than the raw URL, to bound label cardinality."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_PATH)
    return UNMATCHED_PATH


def observe_request(method: str, path: str, status_code: int, duration_s: float) -> None:
    HTTP_REQUESTS_TOTAL.labels(method=method, path=path, status=str(status_code)).inc()
    HTTP_REQUEST_DURATION.labels(method=method, path=path).observe(duration_s)


def render_latest() -> Tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = ["HTTP_REQUESTS_TOTAL", "HTTP_REQUEST_DURATION", "route_template", "observe_request", "render_latest"]
