"""HTTP gateway to certification platforms.

The gateway is the only piece that touches the network.  It is built once
per process (see the lifespan in app/main.py) and injected into badge
clients, so the pipeline can be exercised with a substitute in tests.

httpx.AsyncClient keeps a connection pool and is safe to share between
concurrent requests; there is no per-request mutable state on it.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

from app.core.metrics import UPSTREAM_REQUEST_DURATION

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for failures reaching or reading an upstream resource."""

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(f"{uri}: {message}")
        self.uri = uri
        self.message = message


class TransportError(GatewayError):
    """Connection, timeout, or request-level (non-2xx) failure."""


class ResponseShapeError(GatewayError):
    """The upstream answered, but the body is not JSON."""


@runtime_checkable
class HttpGateway(Protocol):
    """GET a base-relative or absolute URI and return the decoded JSON body."""

    async def get_json(self, uri: str) -> Any: ...


class HttpxGateway:
    """Production gateway backed by a pooled httpx.AsyncClient.

    Relative URIs resolve against ``base_url``; absolute URIs (such as the
    badge-class URL returned inside an assertion) are used as-is.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float,
        platform: str = "upstream",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._platform = platform
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def get_json(self, uri: str) -> Any:
        start = time.monotonic()
        try:
            response = await self._client.get(uri)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportError(uri, f"timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                uri, f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            # ConnectError, TooManyRedirects, and other RequestError subclasses
            raise TransportError(uri, f"request failed: {e}") from e
        except (httpx.InvalidURL, UnicodeError) as e:
            # The URI itself is unusable; for absolute URIs it came from an
            # upstream body, so this is a shape problem, not a network one.
            raise ResponseShapeError(uri, f"invalid URI: {e}") from e
        finally:
            UPSTREAM_REQUEST_DURATION.labels(platform=self._platform).observe(
                time.monotonic() - start
            )

        try:
            return response.json()
        except ValueError:
            raise ResponseShapeError(
                uri, f"body is not JSON: {response.text[:200]!r}"
            ) from None

    async def aclose(self) -> None:
        await self._client.aclose()
        logger.info("HTTP gateway closed platform=%s", self._platform)
