"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping a log of accepted timestamps per key.

    A request is allowed when fewer than ``limit`` units were accepted for the
    key during the last ``window_seconds`` seconds, so the threshold holds for
    any rolling window and not only for aligned ones.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        each worker enforces its own independent limits; use the Redis limiter
        in that case.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Length of the rolling window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._hits_by_key: dict[str, deque[float]] = {}
        self._last_sweep = float("-inf")

    def _evict_expired(self, hits: deque[float], now: float) -> None:
        """Drop timestamps that fell out of the window ending at ``now``."""
        cutoff = now - self._window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def _sweep_idle_keys(self, now: float) -> None:
        """Forget keys with no hit left in the window, at most once per window."""
        if now - self._last_sweep < self._window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits_by_key):
            hits = self._hits_by_key[key]
            self._evict_expired(hits, now)
            if not hits:
                del self._hits_by_key[key]

    def _reset_at(self, hits: deque[float], now: float) -> float:
        """Moment the oldest counted hit expires (now when nothing is counted)."""
        return hits[0] + self._window_seconds if hits else now

    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Args:
            key: Unique identifier for rate limiting (e.g., user id).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._sweep_idle_keys(now)
            hits = self._hits_by_key.setdefault(key, deque())
            self._evict_expired(hits, now)

            if len(hits) + cost <= self._limit:
                hits.extend([now] * cost)
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - len(hits),
                    reset_at=int(math.ceil(self._reset_at(hits, now))),
                    retry_after_seconds=None,
                )

            reset_at = self._reset_at(hits, now)
            if not hits:
                # Cost alone exceeds the limit; nothing will ever free up.
                del self._hits_by_key[key]
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - len(hits)),
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )
