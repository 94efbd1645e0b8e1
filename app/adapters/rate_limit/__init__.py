"""Rate limiting adapters.

A small abstraction layer so post creation can be throttled by an in-process
limiter during development and by a shared Redis limiter in production
without changing the service layer.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.rate_limit.redis_limiter import RedisSlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
    "RedisSlidingWindowRateLimiter",
]
