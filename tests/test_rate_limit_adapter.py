"""Unit tests for the sliding-window rate limiter adapters."""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.adapters.rate_limit.redis_limiter import RedisSlidingWindowRateLimiter


@pytest.mark.asyncio
async def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert (await limiter.consume("k")).allowed is True
    assert (await limiter.consume("k")).allowed is True
    result = await limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0
    assert result.retry_after_seconds is None


@pytest.mark.asyncio
async def test_blocks_fourth_request_within_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    for _ in range(3):
        assert (await limiter.consume("k")).allowed is True

    clock.return_value = 1059.0
    blocked = await limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 1
    assert blocked.reset_at == 1060


@pytest.mark.asyncio
async def test_allows_again_once_window_elapsed() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    for _ in range(3):
        await limiter.consume("k")
    assert (await limiter.consume("k")).allowed is False

    clock.return_value = 1060.0
    assert (await limiter.consume("k")).allowed is True


@pytest.mark.asyncio
async def test_window_slides_instead_of_resetting() -> None:
    """Hits near a minute boundary still count in the next minute."""
    clock = Mock(return_value=1075.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert (await limiter.consume("k")).allowed is True
    clock.return_value = 1079.0
    assert (await limiter.consume("k")).allowed is True

    # 1080 starts a new aligned minute, but both hits are under 60s old.
    clock.return_value = 1081.0
    assert (await limiter.consume("k")).allowed is False

    clock.return_value = 1135.0
    assert (await limiter.consume("k")).allowed is True
    assert (await limiter.consume("k")).allowed is False


@pytest.mark.asyncio
async def test_blocked_requests_do_not_consume() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert (await limiter.consume("k")).allowed is True
    clock.return_value = 1005.0
    assert (await limiter.consume("k")).allowed is False

    clock.return_value = 1010.0
    assert (await limiter.consume("k")).allowed is True


@pytest.mark.asyncio
async def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert (await limiter.consume("k1")).allowed is True
    assert (await limiter.consume("k1")).allowed is False

    assert (await limiter.consume("k2")).allowed is True


@pytest.mark.asyncio
async def test_idle_keys_are_forgotten() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    await limiter.consume("user_old")
    assert "user_old" in limiter._hits_by_key

    clock.return_value = 1061.0
    await limiter.consume("user_new")

    assert set(limiter._hits_by_key) == {"user_new"}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemorySlidingWindowRateLimiter(**kwargs)


@pytest.mark.asyncio
async def test_invalid_consume_args() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        await limiter.consume("")

    with pytest.raises(ValueError):
        await limiter.consume("k", cost=0)


def _redis_limiter(script_result: list[int], **kwargs) -> tuple[RedisSlidingWindowRateLimiter, AsyncMock]:
    script = AsyncMock(return_value=script_result)
    client = MagicMock()
    client.register_script.return_value = script
    limiter = RedisSlidingWindowRateLimiter(
        client,
        limit=3,
        window_seconds=60,
        prefix="test:rl",
        clock=lambda: 1000.0,
        **kwargs,
    )
    return limiter, script


@pytest.mark.asyncio
async def test_redis_limiter_allowed_result() -> None:
    limiter, script = _redis_limiter([1, 1, 1_060_000])

    result = await limiter.consume("user_1")

    assert result.allowed is True
    assert result.limit == 3
    assert result.remaining == 2
    assert result.reset_at == 1060
    assert result.retry_after_seconds is None

    call = script.await_args
    assert call.kwargs["keys"] == ["test:rl:user_1"]
    now_ms, window_ms, limit, cost, member = call.kwargs["args"]
    assert (now_ms, window_ms, limit, cost) == (1_000_000, 60_000, 3, 1)
    assert member


@pytest.mark.asyncio
async def test_redis_limiter_blocked_result() -> None:
    limiter, _ = _redis_limiter([0, 3, 1_030_000])

    result = await limiter.consume("user_1")

    assert result.allowed is False
    assert result.remaining == 0
    assert result.reset_at == 1030
    assert result.retry_after_seconds == 30


@pytest.mark.asyncio
async def test_redis_limiter_rejects_empty_key() -> None:
    limiter, script = _redis_limiter([1, 1, 1_060_000])

    with pytest.raises(ValueError):
        await limiter.consume("")
    script.assert_not_awaited()


@pytest_asyncio.fixture
async def fake_redis():
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.mark.asyncio
async def test_redis_script_enforces_sliding_window(fake_redis) -> None:
    clock = Mock(return_value=1000.0)
    limiter = RedisSlidingWindowRateLimiter(
        fake_redis, limit=3, window_seconds=60, prefix="test:rl", clock=clock
    )

    results = [await limiter.consume("user_1") for _ in range(3)]
    assert [r.allowed for r in results] == [True, True, True]
    assert [r.remaining for r in results] == [2, 1, 0]

    clock.return_value = 1059.0
    blocked = await limiter.consume("user_1")
    assert blocked.allowed is False
    assert blocked.reset_at == 1060
    assert blocked.retry_after_seconds == 1
    assert await fake_redis.zcard("test:rl:user_1") == 3

    clock.return_value = 1060.0
    assert (await limiter.consume("user_1")).allowed is True
    assert 0 < await fake_redis.pttl("test:rl:user_1") <= 60_000


@pytest.mark.asyncio
async def test_redis_script_isolates_keys(fake_redis) -> None:
    limiter = RedisSlidingWindowRateLimiter(
        fake_redis, limit=1, window_seconds=60, prefix="test:rl", clock=lambda: 1000.0
    )

    assert (await limiter.consume("user_1")).allowed is True
    assert (await limiter.consume("user_1")).allowed is False
    assert (await limiter.consume("user_2")).allowed is True
