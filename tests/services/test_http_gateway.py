"""Tests for HttpxGateway, driven through httpx.MockTransport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from app.services.http_gateway import (
    HttpGateway,
    HttpxGateway,
    ResponseShapeError,
    TransportError,
)

BASE = "https://api.credly.com/v1/obi/v2/"


def _get(handler: Callable[[httpx.Request], httpx.Response], uri: str) -> Any:
    async def _run() -> Any:
        gateway = HttpxGateway(
            BASE, timeout=1.0, platform="credly", transport=httpx.MockTransport(handler)
        )
        try:
            return await gateway.get_json(uri)
        finally:
            await gateway.aclose()

    return asyncio.run(_run())


def test_gateway_satisfies_protocol() -> None:
    gateway = HttpxGateway(BASE, timeout=1.0)
    assert isinstance(gateway, HttpGateway)
    asyncio.run(gateway.aclose())


def test_relative_uri_joins_base_and_sends_accept_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"issuedOn": "2024-01-01T00:00:00Z"})

    data = _get(handler, "badge_assertions/abc")

    assert data == {"issuedOn": "2024-01-01T00:00:00Z"}
    assert str(seen[0].url) == BASE + "badge_assertions/abc"
    assert seen[0].method == "GET"
    assert seen[0].headers["accept"] == "application/json"


def test_absolute_uri_is_used_as_is() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"name": "Cloud Practitioner"})

    _get(handler, "https://api.example.com/classes/42")
    assert seen == ["https://api.example.com/classes/42"]


def test_json_array_is_returned_unchanged() -> None:
    # Shape checks belong to the caller; the gateway only decodes
    assert _get(lambda r: httpx.Response(200, json=[1, 2]), "x") == [1, 2]


def test_non_json_body_raises_response_shape_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(ResponseShapeError) as exc_info:
        _get(handler, "badge_assertions/abc")
    assert exc_info.value.uri == "badge_assertions/abc"


def test_empty_body_raises_response_shape_error() -> None:
    with pytest.raises(ResponseShapeError):
        _get(lambda r: httpx.Response(200, content=b""), "x")


@pytest.mark.parametrize("status_code", [404, 500, 503])
def test_error_status_raises_transport_error(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": "nope"})

    with pytest.raises(TransportError, match=f"HTTP {status_code}"):
        _get(handler, "badge_assertions/abc")


def test_connect_error_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="connection refused"):
        _get(handler, "badge_assertions/abc")


def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="timeout"):
        _get(handler, "badge_assertions/abc")


@pytest.mark.parametrize("uri", ["http://\x00/x", "http://a.com/\udc80"])
def test_unusable_uri_raises_response_shape_error(uri: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request should be sent")

    with pytest.raises(ResponseShapeError, match="invalid URI") as exc_info:
        _get(handler, uri)
    assert exc_info.value.uri == uri
