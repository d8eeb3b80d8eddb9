"""Prometheus metrics middleware: instruments every HTTP request.

For each request, this middleware:
  1. Increments the ACTIVE_REQUESTS gauge (decrement on completion)
  2. Times the request duration
  3. On completion: increments REQUEST_COUNT (by method/endpoint/status)
     and observes the duration in REQUEST_DURATION

WHAT THIS DOES NOT COUNT
-------------------------
Every failed lookup is a 404 here, whatever the reason.  The breakdown
(malformed URL, platform unreachable, wrong email, ...) lives in
badge_lookups_total, which the badge client increments; upstream latency
lives in upstream_request_duration_seconds, observed by the gateway.
Read the three together: a rise in 404s with flat transport_failure is
callers, not the platform.

ENDPOINT LABEL
---------------
The URL path is the endpoint label.  The service has no path parameters
(badge URLs travel in the body), so the label set stays bounded.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Scrapes of /metrics would otherwise count themselves
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code = "500"

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=request.url.path,
                status_code=status_code,
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(time.monotonic() - start)

        return response
