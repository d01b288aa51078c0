"""
Request rate limits (SlowAPI, in-memory storage)

Every route gets RATE_LIMIT_DEFAULT through SlowAPIMiddleware. Login,
registration, checkout and payment submission carry tighter per-route
limits. Clients are keyed by the first X-Forwarded-For hop when present.
"""
import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from floresya.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60


def client_key(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def build_limiter(enabled: bool = settings.RATE_LIMIT_ENABLED, default: str = settings.RATE_LIMIT_DEFAULT) -> Limiter:
    return Limiter(key_func=client_key, enabled=enabled, default_limits=[default])


limiter = build_limiter()

# Per-route limits, applied with @limiter.limit(...)
auth_limit = settings.RATE_LIMIT_AUTH
checkout_limit = settings.RATE_LIMIT_CHECKOUT


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Window length of the limit that was hit."""
    limit = getattr(exc, "limit", None)
    item = getattr(limit, "limit", None)
    if item is None:
        return DEFAULT_RETRY_AFTER
    return int(item.get_expiry())


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the standard envelope, with Retry-After."""
    limit = exc.detail or "rate limit"
    logger.warning(f"Rate limit {limit} exceeded by {client_key(request)} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": f"Too many requests ({limit}). Please try again later.",
            "data": {"limit": limit},
        },
        headers={"Retry-After": str(retry_after_seconds(exc))},
    )
