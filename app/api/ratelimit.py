"""Rate limiting dependency for FastAPI routes.

WHY A DEPENDENCY (NOT MIDDLEWARE)
----------------------------------
Middleware runs on every request.  A dependency runs only on routes that
declare it:

  POST /v1/badges/lookup  → limited: each call is one guess at an email
  GET  /health, /ready    → never limited: probes must always answer
  GET  /metrics           → never limited: scrapes must always answer

WHY LOOKUPS NEED A LIMIT AT ALL
--------------------------------
The lookup endpoint answers "does this email hold this badge?".  The 404
hides *why* a lookup failed, but not *whether* it did, so an unthrottled
client could walk a list of addresses against one badge URL until it
gets a 200.  The bucket caps that guessing rate per client.

RATE LIMIT KEYS
----------------
Lookups are anonymous, so buckets are keyed by client IP.  Clients behind
one NAT share a bucket; that is acceptable for a low-volume lookup.

RESPONSE HEADERS
-----------------
A 429 carries Retry-After (whole seconds, rounded up) and
X-RateLimit-Limit / X-RateLimit-Remaining, so well-behaved clients can
back off instead of retrying in a tight loop.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from app.core.config import SETTINGS
from app.core.metrics import RATE_LIMIT_HITS
from app.db.redis import redis_pool
from app.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

_rate_limiter: RateLimiter
if redis_pool is not None:
    _rate_limiter = RedisRateLimiter(redis_pool)
else:
    _rate_limiter = InMemoryRateLimiter()


BADGE_LOOKUP_LIMIT = RateLimitConfig(
    capacity=SETTINGS.badge_lookup_rate_capacity,
    refill_rate=SETTINGS.badge_lookup_rate_refill,
)


def require_rate_limit(config: RateLimitConfig = BADGE_LOOKUP_LIMIT):
    """Dependency factory: enforce ``config`` on a route.

    Usage: @router.post(..., dependencies=[Depends(require_rate_limit())])
    """

    async def _check(request: Request) -> None:
        key = _build_key(request)
        result: RateLimitResult = await _rate_limiter.check(key, config)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(key_type="ip").inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _build_key(request: Request) -> str:
    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
