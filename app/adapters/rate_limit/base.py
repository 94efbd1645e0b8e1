"""Rate limiter interfaces.

Services depend on this abstraction (not the concrete implementation) so the
storage backend can be swapped (in-process for development, Redis when the
API runs with several workers) without touching business logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the oldest counted request leaves
            the window and budget frees up again.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for sliding-window rate limiters."""

    @abstractmethod
    async def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Check the budget for a key and consume it when allowed.

        The check and the consumption happen atomically: a blocked call
        does not consume anything.

        Args:
            key: Unique identifier (e.g., the author's user id).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""
        return None
