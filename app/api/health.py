"""Health and readiness endpoints.

  /health (liveness): process is up; reports dependency status.
    Returns 200 even when degraded; ``status`` carries the detail.

  /ready (readiness): the badge client is built and the gateway is open.
    503 takes the instance out of rotation without restarting it.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from app.core.config import SETTINGS
from app.db.redis import redis_pool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    return {
        "status": overall,
        "checks": checks,
        "platform": SETTINGS.badge_platform,
    }


@router.get("/ready")
async def ready(request: Request) -> Response:
    if getattr(request.app.state, "badge_client", None) is None:
        return Response(status_code=503)
    return Response(status_code=200)
