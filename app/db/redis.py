"""Redis connection pool.

Redis backs the shared rate limiter.  When REDIS_URL is not configured
(local dev, tests) ``redis_pool`` is None and consumers fall back to
their in-memory implementation.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis() -> AsyncGenerator[None, None]:
    """Check connectivity on startup and release the pool on shutdown.

    An unreachable Redis is logged, not fatal; rate limit checks will
    fail until it comes back.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; rate limiting is per-process")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis connection failed on startup")

    try:
        yield
    finally:
        await redis_pool.aclose()
        logger.info("Redis connection pool closed")
