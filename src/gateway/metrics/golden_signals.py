"""4 Golden Signals middleware for FastAPI.

- Latency: request duration histogram (seconds)
- Traffic: request counter
- Errors: error counter (HTTP 5xx)
- Saturation: active request gauge

Requests are labelled by the matched route template
(/api/v1/governance/policies/{id}), never the raw path, to bound cardinality.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import Request, Response

# -- Latency --
REQUEST_DURATION = Histogram(
    "pravado_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route", "status_code"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# -- Traffic --
REQUEST_TOTAL = Counter(
    "pravado_http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status_code"],
)

# -- Errors --
ERROR_TOTAL = Counter(
    "pravado_http_errors_total",
    "Total HTTP error responses (5xx)",
    ["method", "route", "status_code"],
)

# -- Saturation --
ACTIVE_REQUESTS = Gauge(
    "pravado_http_active_requests",
    "Number of active HTTP requests",
    ["method"],
)

_EXEMPT_PATHS = frozenset({"/metrics", "/healthz"})
UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """Path template of the route that handled request, if any."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def _record(method: str, route: str, status_code: int, duration: float) -> None:
    labels = {"method": method, "route": route, "status_code": str(status_code)}
    REQUEST_DURATION.labels(**labels).observe(duration)
    REQUEST_TOTAL.labels(**labels).inc()
    if status_code >= 500:
        ERROR_TOTAL.labels(**labels).inc()


async def golden_signals_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Collect 4 golden signals for each request."""
    if request.url.path in _EXEMPT_PATHS:
        return await call_next(request)

    method = request.method
    ACTIVE_REQUESTS.labels(method=method).inc()
    start = time.monotonic()

    try:
        response = await call_next(request)
    except Exception:
        _record(method, route_template(request), 500, time.monotonic() - start)
        raise
    finally:
        ACTIVE_REQUESTS.labels(method=method).dec()

    _record(method, route_template(request), response.status_code, time.monotonic() - start)
    return response
