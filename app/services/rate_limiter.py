"""Token bucket rate limiting for badge lookups.

WHAT IS BEING LIMITED
----------------------
Each lookup costs one token.  The lookup endpoint answers "does this
email hold this badge?", so an unthrottled client could enumerate
recipients by trying addresses one after another.  The bucket caps how
fast a single client can try (url, email) pairs.

HOW THE TOKEN BUCKET WORKS
---------------------------
A bucket holds up to ``capacity`` tokens and refills at ``refill_rate``
tokens per second.  A request takes one token or is refused.

  capacity=10, refill_rate=0.2  (the defaults)
    → a person pasting a few badge URLs never notices the limit
    → a script is held to one guess every five seconds (720/hour)

Refill is computed lazily from the elapsed time on each check; nothing
runs in the background.

BACKENDS
---------
Two implementations behind one protocol:

  InMemoryRateLimiter  single process (dev/test); buckets vanish on restart
  RedisRateLimiter     shared across API instances; used when REDIS_URL is set
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    retry_after: seconds until the next token is available (0 if allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after: float


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """capacity = burst size, refill_rate = tokens per second."""

    capacity: int = 10
    refill_rate: float = 0.2


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    """Per-process token buckets.  Limits are not shared across instances."""

    def __init__(self) -> None:
        # key -> (tokens_remaining, last_refill_timestamp)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()
        tokens, last_refill = self._buckets.get(key, (float(config.capacity), now))

        tokens = min(config.capacity, tokens + (now - last_refill) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True,
                remaining=int(tokens),
                limit=config.capacity,
                retry_after=0,
            )

        self._buckets[key] = (tokens, now)
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=(1 - tokens) / config.refill_rate,
        )

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


class RedisRateLimiter:
    """Redis-backed token bucket shared by every API instance.

    The refill/consume step is a read-modify-write, so it runs as a Lua
    script; Redis executes scripts atomically.
    """

    # KEYS[1] = bucket key
    # ARGV[1] = capacity, ARGV[2] = refill_rate, ARGV[3] = now (seconds)
    # Returns {allowed (0/1), remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = math.ceil(capacity / refill_rate) + 60

    local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
    local tokens = tonumber(bucket[1])
    local last_refill = tonumber(bucket[2])

    if tokens == nil then
        tokens = capacity
        last_refill = now
    end

    tokens = math.min(capacity, tokens + (now - last_refill) * refill_rate)

    if tokens >= 1 then
        tokens = tokens - 1
        redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
        redis.call('EXPIRE', key, ttl)
        return {1, math.floor(tokens), 0}
    end

    redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
    redis.call('EXPIRE', key, ttl)
    return {0, 0, math.ceil((1 - tokens) / refill_rate * 1000)}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = self._redis.register_script(self._LUA_SCRIPT)

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        allowed, remaining, retry_after_ms = await self._script(
            keys=[f"ratelimit:{key}"],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining),
            limit=config.capacity,
            retry_after=retry_after_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"ratelimit:{key}")
