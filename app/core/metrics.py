"""Application metrics using the Prometheus client library.

All metrics are defined here so there is a single inventory of what the
service measures.  Other modules import a metric and increment/observe it
at the point of action.

Badge lookups collapse every failure into one 404 for the caller.
``badge_lookups_total`` keeps the per-stage outcome visible to operators:

  rate(badge_lookups_total{outcome="transport_failure"}[5m])
  → how often the certification platform is unreachable
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # A lookup is two sequential upstream calls, so the upper buckets matter
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Badge pipeline metrics
# ---------------------------------------------------------------------------

BADGE_LOOKUPS = Counter(
    "badge_lookups_total",
    "Badge lookups by platform and pipeline outcome",
    # outcome: ok | malformed_input | transport_failure
    #          | unexpected_response | identity_mismatch | unexpected_error
    ["platform", "outcome"],
)

UPSTREAM_REQUEST_DURATION = Histogram(
    "upstream_request_duration_seconds",
    "Duration of requests to the certification platform",
    ["platform"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["key_type"],
)
