"""Credly badge client.

Consumes Credly's public Open Badges v2 (OBI) API:

  GET {base}/badge_assertions/{badge_id}   → Assertion
  GET {assertion.badge}                    → BadgeClass (absolute URL)

Lookup pipeline, each step a precondition for the next:

  extract_badge_id → fetch_assertion → verify_recipient
      → fetch_badge_class → BadgeRecord.assemble

Any failed step ends the lookup with None.  The caller cannot tell a bad
URL from an unknown badge or a wrong email; telling them apart would let
anyone probe which emails hold which badges.  Operators get the reason
from the log line and the badge_lookups_total counter.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from app.core.metrics import BADGE_LOOKUPS
from app.models.badge import BadgeAssertion, BadgeClass, BadgeRecord
from app.services.http_gateway import GatewayError, HttpGateway, TransportError
from app.services.recipient_verifier import verify_recipient

logger = logging.getLogger(__name__)

PLATFORM = "credly"

# Public badge URLs look like https://www.credly.com/badges/{uuid}[/public_url]
BADGE_URL_PATTERN = re.compile(r"credly\.com/badges/([a-f0-9\-]{36})", re.IGNORECASE)


def extract_badge_id(url: str) -> str | None:
    """Return the badge id from a public Credly badge URL, or None."""
    match = BADGE_URL_PATTERN.search(url)
    return match.group(1) if match else None


def parse_assertion(data: dict[str, Any]) -> BadgeAssertion | None:
    recipient = data.get("recipient")
    identity = recipient.get("identity") if isinstance(recipient, dict) else None
    issued_on = data.get("issuedOn")
    badge_ref = data.get("badge")
    expires = data.get("expires")

    if not isinstance(issued_on, str) or not isinstance(identity, str):
        return None
    if not isinstance(badge_ref, str) or not badge_ref:
        return None
    if expires is not None and not isinstance(expires, str):
        return None

    return BadgeAssertion(
        issued_at=issued_on,
        recipient_identity=identity,
        badge_class_ref=badge_ref,
        expires_at=expires,
    )


def parse_badge_class(data: dict[str, Any]) -> BadgeClass | None:
    name = data.get("name")
    issuer = data.get("issuer")
    issuer_name = issuer.get("name") if isinstance(issuer, dict) else None
    if not isinstance(name, str) or not isinstance(issuer_name, str):
        return None

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        return None

    # OBv2 allows the image as a bare IRI or as an Image object with an id
    image = data.get("image")
    if isinstance(image, dict):
        image_ref = image.get("id")
    else:
        image_ref = image
    if image_ref is not None and not isinstance(image_ref, str):
        return None

    tags = data.get("tags")
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        return None

    return BadgeClass(
        name=name,
        issuer_name=issuer_name,
        description=description,
        image_ref=image_ref,
        tags=tuple(tags),
    )


class CredlyClient:
    """BadgeClient implementation for Credly."""

    platform = PLATFORM

    def __init__(self, gateway: HttpGateway) -> None:
        self._gateway = gateway

    async def fetch_badge(self, url: str, email: str) -> BadgeRecord | None:
        """Fetch a badge and confirm ``email`` is its recipient.

        Never raises.  Returns None when the URL is not a Credly badge URL,
        the platform cannot be reached, a response has an unexpected shape,
        or the email does not match the recipient.
        """
        try:
            return await self._run_pipeline(url, email)
        except Exception:
            logger.exception(
                "credly: unexpected error during badge lookup",
                extra={"platform": PLATFORM, "failure_kind": "unexpected_error"},
            )
            BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="unexpected_error").inc()
            return None

    async def _run_pipeline(self, url: str, email: str) -> BadgeRecord | None:
        badge_id = extract_badge_id(url)
        if badge_id is None:
            logger.info(
                "credly: badge url rejected url=%r",
                url[:200],
                extra={"platform": PLATFORM, "failure_kind": "malformed_input"},
            )
            BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="malformed_input").inc()
            return None

        assertion = await self.fetch_assertion(badge_id)
        if assertion is None:
            return None

        if not verify_recipient(assertion, email):
            logger.info(
                "credly: recipient mismatch badge_id=%s",
                badge_id,
                extra={
                    "platform": PLATFORM,
                    "badge_id": badge_id,
                    "failure_kind": "identity_mismatch",
                },
            )
            BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="identity_mismatch").inc()
            return None

        badge_class = await self.fetch_badge_class(assertion.badge_class_ref)
        if badge_class is None:
            return None

        BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="ok").inc()
        logger.info(
            "credly: badge verified badge_id=%s name=%r",
            badge_id,
            badge_class.name,
            extra={"platform": PLATFORM, "badge_id": badge_id},
        )
        return BadgeRecord.assemble(assertion, badge_class, badge_id)

    async def fetch_assertion(self, badge_id: str) -> BadgeAssertion | None:
        """Fetch the assertion (issuance dates, recipient hash, class URL)."""
        uri = f"badge_assertions/{badge_id}"
        data = await self._request(uri)
        if data is None:
            return None
        assertion = parse_assertion(data)
        if assertion is None:
            self._unexpected_response(uri, "assertion missing issuedOn/recipient/badge")
        return assertion

    async def fetch_badge_class(self, badge_class_url: str) -> BadgeClass | None:
        """Fetch the badge class from the absolute URL given by the assertion."""
        data = await self._request(badge_class_url)
        if data is None:
            return None
        badge_class = parse_badge_class(data)
        if badge_class is None:
            self._unexpected_response(badge_class_url, "badge class missing name/issuer")
        return badge_class

    async def _request(self, uri: str) -> dict[str, Any] | None:
        """GET ``uri`` and return the body if it is a JSON object."""
        try:
            data = await self._gateway.get_json(uri)
        except TransportError as e:
            logger.warning(
                "credly: error reaching %s: %s",
                uri,
                e.message,
                extra={
                    "platform": PLATFORM,
                    "upstream_uri": uri,
                    "failure_kind": "transport_failure",
                },
            )
            BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="transport_failure").inc()
            return None
        except GatewayError as e:
            self._unexpected_response(uri, e.message)
            return None

        if not isinstance(data, dict):
            self._unexpected_response(
                uri, f"expected a JSON object, got {type(data).__name__}"
            )
            return None
        return data

    @staticmethod
    def _unexpected_response(uri: str, detail: str) -> None:
        logger.warning(
            "credly: unexpected response for %s: %s",
            uri,
            detail,
            extra={
                "platform": PLATFORM,
                "upstream_uri": uri,
                "failure_kind": "unexpected_response",
            },
        )
        BADGE_LOOKUPS.labels(platform=PLATFORM, outcome="unexpected_response").inc()
