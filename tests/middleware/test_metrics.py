"""Tests for Prometheus metrics.

Counters in the default registry cannot be reset between tests, so
assertions compare values before and after the action.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import BADGE_URL, EMAIL


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_lookup_outcomes_are_counted(client: TestClient) -> None:
    ok = {"platform": "credly", "outcome": "ok"}
    mismatch = {"platform": "credly", "outcome": "identity_mismatch"}
    ok_before = _get_sample("badge_lookups_total", ok)
    mismatch_before = _get_sample("badge_lookups_total", mismatch)

    client.post("/v1/badges/lookup", json={"url": BADGE_URL, "email": EMAIL})
    client.post("/v1/badges/lookup", json={"url": BADGE_URL, "email": "x@example.com"})

    assert _get_sample("badge_lookups_total", ok) - ok_before == 1
    assert _get_sample("badge_lookups_total", mismatch) - mismatch_before == 1


def test_lookup_404_is_counted_by_status(client: TestClient) -> None:
    labels = {"method": "POST", "endpoint": "/v1/badges/lookup", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.post("/v1/badges/lookup", json={"url": "nope", "email": EMAIL})
    assert _get_sample("http_requests_total", labels) - before == 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "badge_lookups_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before
