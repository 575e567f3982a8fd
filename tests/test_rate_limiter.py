"""
Tests for fixed-window rate limiting.
"""

from unittest.mock import MagicMock

import pytest

from app.utils.rate_limiter import (
    FixedWindowRateLimiter,
    InMemoryRateLimitStore,
    RedisRateLimitStore,
    create_rate_limiter
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter(InMemoryRateLimitStore(), clock=clock)


def test_eleventh_request_rejected(limiter):
    """Ten mood entries per minute are allowed, the eleventh is not"""
    results = [limiter.check("mood_entry_1", 10, 60) for _ in range(11)]
    assert results == [True] * 10 + [False]


def test_limit_resets_after_window(limiter, clock):
    for _ in range(10):
        limiter.check("mood_entry_1", 10, 60)
    assert not limiter.check("mood_entry_1", 10, 60)

    clock.now += 61
    assert limiter.check("mood_entry_1", 10, 60)


def test_window_boundary_is_inclusive(limiter, clock):
    """A hit exactly at reset_at still belongs to the old window"""
    limiter.check("key", 1, 60)
    clock.now += 60
    assert not limiter.check("key", 1, 60)


def test_identifiers_are_independent(limiter):
    for _ in range(3):
        limiter.check("user_1", 3, 60)
    assert not limiter.check("user_1", 3, 60)
    assert limiter.check("user_2", 3, 60)


def test_evict_expired(limiter, clock):
    limiter.check("a", 5, 60)
    limiter.check("b", 5, 120)
    clock.now += 90

    assert limiter.evict_expired() == 1
    assert len(limiter.store) == 1


def test_reset_clears_all_windows(limiter):
    for _ in range(5):
        limiter.check("a", 5, 60)
    limiter.reset()
    assert limiter.check("a", 5, 60)
    assert len(limiter.store) == 1


def test_redis_store_sets_expiry_on_new_window():
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.return_value = [1, True]

    store = RedisRateLimitStore(client)
    assert store.hit("api_1.2.3.4", 60, now=0) == 1
    pipe.incr.assert_called_once_with("ratelimit:api_1.2.3.4")
    pipe.pexpire.assert_called_once_with("ratelimit:api_1.2.3.4", 60000, nx=True)
    client.pexpire.assert_not_called()


def test_redis_store_keeps_running_window():
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [4, False]

    limiter = FixedWindowRateLimiter(RedisRateLimitStore(client))
    assert not limiter.check("api_1.2.3.4", 3, 60)
    client.pexpire.assert_not_called()


def test_create_rate_limiter_requires_redis_url():
    with pytest.raises(ValueError):
        create_rate_limiter("redis", None)
    assert isinstance(create_rate_limiter().store, InMemoryRateLimitStore)
