from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.badges import router as badges_router
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.db.redis import lifespan_redis
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware
from app.services.badge_clients import api_base_for, build_badge_client
from app.services.http_gateway import HttpxGateway

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan_badges(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the HTTP gateway once and hand it to the badge client.

    The gateway's connection pool is shared by all in-flight lookups and
    closed on shutdown.
    """
    gateway = HttpxGateway(
        api_base_for(SETTINGS.badge_platform, SETTINGS),
        timeout=SETTINGS.upstream_timeout_seconds,
        platform=SETTINGS.badge_platform,
    )
    app.state.badge_client = build_badge_client(SETTINGS.badge_platform, gateway)
    logger.info(
        "Badge client ready platform=%s timeout=%.1fs",
        SETTINGS.badge_platform,
        SETTINGS.upstream_timeout_seconds,
    )
    try:
        yield
    finally:
        app.state.badge_client = None
        await gateway.aclose()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order even if one fails
    async with lifespan_redis():
        async with lifespan_badges(app):
            yield


app = FastAPI(
    title="certmap-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(badges_router)
app.include_router(health_router)

logger.info(
    "certmap-service started  env=%s log_level=%s port=%d platform=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.badge_platform,
    "on" if SETTINGS.is_dev else "off",
)
