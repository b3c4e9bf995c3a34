"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiter owned by the application (created in the
app factory lifespan and stored on ``app.state``) into the HTTP layer.

Rate limiting strategy:
- Fixed-window limit per client IP address.
- Disabled entirely when APP_RATE_LIMIT_ENABLED is false.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import HTTPException, Request, status

from app.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the process-wide limiter created at application startup."""

    return request.app.state.rate_limiter


def build_rate_limit_key(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced limiter key.
    """

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, counts the request against the client's window. If the
    client has exhausted its window, raises HTTP 429.

    Args:
        request: FastAPI request.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
    """

    app_settings = request.app.state.settings.app
    if not app_settings.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    key = build_rate_limit_key(request)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": _hash_limiter_key(key),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_limiter_key(key),
            "limit": result.limit,
            "window_s": app_settings.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if app_settings.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests, please try again later.",
        headers=headers or None,
    )
