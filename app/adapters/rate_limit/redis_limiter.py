"""Redis-backed sliding-window rate limiter.

Shared across workers and instances. Each key is a sorted set of accepted
request ids scored by their timestamp in milliseconds. Eviction, counting and
insertion run inside one Lua script so concurrent requests for the same key
cannot both squeeze through the last slot.
"""

from __future__ import annotations

import math
import time
import uuid
from typing import Callable

import redis.asyncio as aioredis

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local cost = tonumber(ARGV[4])
local member = ARGV[5]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)
local allowed = 0
if count + cost <= limit then
  for i = 1, cost do
    redis.call('ZADD', key, now, member .. ':' .. i)
  end
  count = count + cost
  allowed = 1
end

local reset_at = now
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
if oldest[2] then
  reset_at = tonumber(oldest[2]) + window
end
if count > 0 then
  redis.call('PEXPIRE', key, window)
end
return {allowed, count, reset_at}
"""


class RedisSlidingWindowRateLimiter(AbstractRateLimiter):
    """Sliding-window limiter storing its log in Redis."""

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        limit: int,
        window_seconds: int,
        prefix: str = "posts:ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._client = client
        self._limit = limit
        self._window_ms = window_seconds * 1000
        self._prefix = prefix
        self._clock = clock
        self._script = client.register_script(SLIDING_WINDOW_SCRIPT)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisSlidingWindowRateLimiter":
        """Build a limiter with its own connection pool."""
        return cls(aioredis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now_ms = int(self._clock() * 1000)
        allowed, count, reset_at_ms = await self._script(
            keys=[self._key(key)],
            args=[now_ms, self._window_ms, self._limit, cost, uuid.uuid4().hex],
        )
        allowed = bool(int(allowed))
        count = int(count)
        reset_at_ms = int(reset_at_ms)

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=max(0, self._limit - count),
                reset_at=int(math.ceil(reset_at_ms / 1000)),
                retry_after_seconds=None,
            )

        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_at=int(math.ceil(reset_at_ms / 1000)),
            retry_after_seconds=max(1, int(math.ceil((reset_at_ms - now_ms) / 1000))),
        )

    async def close(self) -> None:
        await self._client.aclose()
