from __future__ import annotations

import hashlib
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.api.badges import get_badge_client
from app.api.ratelimit import _rate_limiter
from app.main import app
from app.services.credly_client import CredlyClient
from app.services.http_gateway import TransportError

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

BADGE_ID = "3fae1210-0000-4000-8000-000000000000"
BADGE_URL = f"https://www.credly.com/badges/{BADGE_ID}/public_url"
EMAIL = "alice@example.com"
ASSERTION_URI = f"badge_assertions/{BADGE_ID}"
BADGE_CLASS_URI = "https://api.example.com/classes/42"


def identity_for(email: str) -> str:
    return "sha256$" + hashlib.sha256(email.encode("utf-8")).hexdigest()


def make_assertion(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "issuedOn": "2024-01-01T00:00:00Z",
        "recipient": {"type": "email", "hashed": True, "identity": identity_for(EMAIL)},
        "badge": BADGE_CLASS_URI,
    }
    data.update(overrides)
    return data


def make_badge_class(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": "Cloud Practitioner",
        "issuer": {"name": "ExampleCorp"},
        "description": "...",
        "image": {"id": "img-1"},
        "tags": ["cloud", "entry-level"],
    }
    data.update(overrides)
    return data


class FakeGateway:
    """In-memory HttpGateway: canned JSON or exception per URI.

    Unknown URIs behave like an upstream 404.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[str] = []

    async def get_json(self, uri: str) -> Any:
        self.calls.append(uri)
        result = self.responses.get(uri, TransportError(uri, "HTTP 404: Not Found"))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(_rate_limiter, "_buckets"):
        _rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def gateway() -> FakeGateway:
    """Gateway answering the happy-path Credly lookup for EMAIL."""
    return FakeGateway(
        {
            ASSERTION_URI: make_assertion(),
            BADGE_CLASS_URI: make_badge_class(),
        }
    )


@pytest.fixture
def credly(gateway: FakeGateway) -> CredlyClient:
    return CredlyClient(gateway)


@pytest.fixture
def client(credly: CredlyClient) -> Iterator[TestClient]:
    """TestClient with the lifespan running and the badge client swapped
    for one backed by the fake gateway."""
    app.dependency_overrides[get_badge_client] = lambda: credly
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
