from __future__ import annotations

import asyncio

from app.services.rate_limiter import InMemoryRateLimiter, RateLimitConfig, RateLimiter


def test_in_memory_limiter_satisfies_protocol() -> None:
    assert isinstance(InMemoryRateLimiter(), RateLimiter)


def test_allows_up_to_capacity_then_rejects() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=3, refill_rate=0.001)

    async def _run() -> list[bool]:
        return [(await limiter.check("ip:1", config)).allowed for _ in range(4)]

    assert asyncio.run(_run()) == [True, True, True, False]


def test_rejection_reports_retry_after() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=1, refill_rate=0.5)

    async def _run():
        await limiter.check("ip:1", config)
        return await limiter.check("ip:1", config)

    result = asyncio.run(_run())
    assert result.allowed is False
    assert result.remaining == 0
    assert result.limit == 1
    assert 0 < result.retry_after <= 2.0


def test_keys_have_separate_buckets() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=1, refill_rate=0.001)

    async def _run():
        await limiter.check("ip:1", config)
        return await limiter.check("ip:2", config)

    assert asyncio.run(_run()).allowed is True


def test_reset_refills_bucket() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=1, refill_rate=0.001)

    async def _run():
        await limiter.check("ip:1", config)
        await limiter.reset("ip:1")
        return await limiter.check("ip:1", config)

    assert asyncio.run(_run()).allowed is True
