"""Rate limiting wiring for the post service.

This module owns the process-wide limiter instance and the helper that turns
a blocked result into a domain error.

Rate limiting strategy:
- Sliding window per author id (default 3 posts per rolling 60 seconds).
- Backend chosen by RATE_LIMIT_BACKEND: 'memory' or 'redis'.
- Checked inside the create operation, after input validation, so rejected
  payloads never consume budget.
"""

from __future__ import annotations

import hashlib
import logging

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.rate_limit.redis_limiter import RedisSlidingWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitAppError, ValidationAppError

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[str, int, int] | None = None


def _build_rate_limiter() -> AbstractRateLimiter:
    backend = settings.rate_limit.backend.lower()

    if backend == "memory":
        return InMemorySlidingWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        )

    if backend == "redis":
        return RedisSlidingWindowRateLimiter.from_url(
            settings.rate_limit.redis_url,
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            prefix=settings.rate_limit.prefix,
        )

    raise ValidationAppError(
        code="rate_limit_unknown_backend",
        message=(
            f"Unknown rate limit backend: '{backend}'. Supported backends: memory, redis"
        ),
    )


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.rate_limit.backend,
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = _build_rate_limiter()
        _limiter_config = config

    return _limiter


async def close_rate_limiter() -> None:
    """Dispose of the cached limiter (called on application shutdown)."""

    global _limiter, _limiter_config

    if _limiter is not None:
        await _limiter.close()
    _limiter = None
    _limiter_config = None


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing user ids."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(limiter: AbstractRateLimiter, key: str) -> None:
    """Consume one unit for ``key`` or raise when the budget is exhausted.

    Args:
        limiter: Limiter to consult.
        key: Budget owner, the author's user id.

    Raises:
        RateLimitAppError: When the caller exceeded the configured rate.
    """

    if not settings.app.rate_limit_enabled:
        return

    key_hash = _hash_limiter_key(key)
    result = await limiter.consume(key)

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitAppError(
        code="too_many_requests",
        message="Too many post requests",
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": retry_after,
        },
    )
