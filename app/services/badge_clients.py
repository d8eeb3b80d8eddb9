"""Badge client contract and platform registry.

Every certification platform gets its own BadgeClient implementation.
The API layer only depends on the protocol, and the platform in use is
picked by BADGE_PLATFORM at startup. Adding a platform means adding an
implementation and one registry entry naming its client class and the
setting that holds its API base URL; neither main.py nor the endpoint
changes.

Before adding a platform, confirm its public API exposes enough to
fill a BadgeRecord (name, issuer, external id, issue date) and some way
to tie a badge to a recipient email.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from app.core.config import Settings
from app.models.badge import BadgeRecord
from app.services.credly_client import CredlyClient
from app.services.http_gateway import HttpGateway


@runtime_checkable
class BadgeClient(Protocol):
    """Fetch a badge from its public URL and check it belongs to ``email``.

    Implementations return None, and never raise, when the URL is invalid,
    the badge cannot be fetched, or the email does not match the recipient.
    """

    platform: str

    async def fetch_badge(self, url: str, email: str) -> BadgeRecord | None: ...


@dataclass(frozen=True, slots=True)
class _Platform:
    factory: Callable[[HttpGateway], BadgeClient]
    # Which setting holds the platform's API root
    api_base: Callable[[Settings], str]


_PLATFORMS: dict[str, _Platform] = {
    "credly": _Platform(CredlyClient, lambda settings: settings.credly_api_base),
}


def available_platforms() -> list[str]:
    return sorted(_PLATFORMS)


def _lookup(platform: str) -> _Platform:
    try:
        return _PLATFORMS[platform]
    except KeyError:
        raise ValueError(
            f"unknown badge platform {platform!r} "
            f"(available: {', '.join(available_platforms())})"
        ) from None


def api_base_for(platform: str, settings: Settings) -> str:
    """Base URL the gateway for ``platform`` resolves relative URIs against."""
    return _lookup(platform).api_base(settings)


def build_badge_client(platform: str, gateway: HttpGateway) -> BadgeClient:
    """Instantiate the client registered for ``platform``.

    Raises ValueError for an unknown platform; that is a configuration
    error and should stop the service at startup.
    """
    return _lookup(platform).factory(gateway)
