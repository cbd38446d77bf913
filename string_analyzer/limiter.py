import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from string_analyzer.config import Settings, get_settings

logger = logging.getLogger("string_analyzer.limiter")

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def default_rate_limit(settings: Settings) -> str:
    return f"{settings.rate_limit} per {settings.rate_limit_window} seconds"


def create_limiter() -> Limiter:
    """Global per-client limit; Redis-backed when REDIS_URL is set, in-memory otherwise."""
    settings = get_settings()
    default_limit = default_rate_limit(settings)
    kwargs: dict = {}
    if settings.redis_url:
        kwargs["storage_uri"] = settings.redis_url
    try:
        return Limiter(
            key_func=get_remote_address,
            default_limits=[default_limit],
            enabled=settings.rate_limit_enabled,
            **kwargs,
        )
    except Exception:
        logger.exception("Failed to create slowapi Limiter")
        raise


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s on %s %s", get_remote_address(request), request.method, request.url.path)
    return JSONResponse(
        status_code=429,
        content={"status": "error", "message": RATE_LIMIT_MESSAGE},
    )


def get_middleware() -> Any:
    return SlowAPIMiddleware
