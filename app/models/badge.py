from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class BadgeAssertion:
    """Issuance record, mapped to an Open Badges v2 Assertion.

    recipient_identity is the platform's algorithm-prefixed hash of the
    recipient email (e.g. ``sha256$<hex>``), never the email itself.
    """

    issued_at: str
    recipient_identity: str
    badge_class_ref: str
    expires_at: str | None = None  # None = does not expire


@dataclass(frozen=True, slots=True)
class BadgeClass:
    """Credential template, mapped to an Open Badges v2 BadgeClass."""

    name: str
    issuer_name: str
    description: str | None = None
    image_ref: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BadgeRecord:
    """Canonical badge record handed to the catalog.

    Only ever built from a fetched assertion and its badge class, after the
    recipient check passed.  There is no partially populated record.
    """

    name: str
    issuer: str
    external_id: str
    issued_at: str
    description: str | None = None
    image_url: str | None = None
    tags: tuple[str, ...] = field(default=())
    expires_at: str | None = None

    @staticmethod
    def assemble(
        assertion: BadgeAssertion, badge_class: BadgeClass, external_id: str
    ) -> BadgeRecord:
        return BadgeRecord(
            name=badge_class.name,
            issuer=badge_class.issuer_name,
            external_id=external_id,
            issued_at=assertion.issued_at,
            description=badge_class.description,
            image_url=badge_class.image_ref,
            tags=badge_class.tags,
            expires_at=assertion.expires_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "issuer": self.issuer,
            "external_id": self.external_id,
            "issued_at": self.issued_at,
            "description": self.description,
            "image_url": self.image_url,
            "tags": list(self.tags),
            "expires_at": self.expires_at,
        }
