from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_CREDLY_API_BASE = "https://api.credly.com/v1/obi/v2/"


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


def _positive_int(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {raw!r})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    redis_url: str | None
    badge_platform: str
    credly_api_base: str
    upstream_timeout_seconds: float
    badge_lookup_rate_capacity: int
    badge_lookup_rate_refill: float

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    redis_url = _getenv("REDIS_URL", "") or None

    badge_platform = _getenv("BADGE_PLATFORM", "credly").lower()
    if not badge_platform:
        raise ValueError("BADGE_PLATFORM must not be empty")

    credly_api_base = _getenv("CREDLY_API_BASE", DEFAULT_CREDLY_API_BASE)
    if not credly_api_base.startswith(("http://", "https://")):
        raise ValueError(
            f"CREDLY_API_BASE must be an http(s) URL (got {credly_api_base!r})"
        )
    # httpx joins relative paths onto the base only when it ends in a slash
    if not credly_api_base.endswith("/"):
        credly_api_base += "/"

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1"),
        port=port,
        redis_url=redis_url,
        badge_platform=badge_platform,
        credly_api_base=credly_api_base,
        upstream_timeout_seconds=_positive_float(
            "UPSTREAM_TIMEOUT_SECONDS", _getenv("UPSTREAM_TIMEOUT_SECONDS", "10")
        ),
        badge_lookup_rate_capacity=_positive_int(
            "BADGE_LOOKUP_RATE_CAPACITY", _getenv("BADGE_LOOKUP_RATE_CAPACITY", "10")
        ),
        badge_lookup_rate_refill=_positive_float(
            "BADGE_LOOKUP_RATE_REFILL", _getenv("BADGE_LOOKUP_RATE_REFILL", "0.2")
        ),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
