from __future__ import annotations

import hashlib
import hmac

from app.models.badge import BadgeAssertion

# Open Badges v2 hashed identities carry the algorithm as a prefix.
# Credly only publishes sha256.
SHA256_PREFIX = "sha256$"


def hash_recipient_email(email: str) -> str:
    """Hex sha256 of the email exactly as given (no case or whitespace folding)."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


def verify_recipient(assertion: BadgeAssertion, claimed_email: str) -> bool:
    """Check the claimed email hashes to the assertion's recipient identity.

    Uses constant-time comparison so response timing does not reveal how
    much of the hash matched.

    LIMITATION: this proves the claimed email maps to the stored hash, not
    that the caller owns that email.  Anyone who knows the recipient's
    address passes.  The platform's public API offers nothing stronger
    without authenticating against it.
    """
    stored_hash = assertion.recipient_identity.removeprefix(SHA256_PREFIX)
    claimed_hash = hash_recipient_email(claimed_email)
    return hmac.compare_digest(
        stored_hash.encode("utf-8"), claimed_hash.encode("utf-8")
    )
