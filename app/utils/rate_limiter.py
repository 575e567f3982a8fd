"""
Fixed-window rate limiting.

This module provides a FixedWindowRateLimiter that counts hits per identifier
(user id or client IP) inside a fixed time window. It supports:
- A process-local store, cleared lazily once a window expires
- A Redis store for deployments with more than one instance
- An injectable clock so windows can be tested without sleeping
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from redis import Redis

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    count: int
    reset_at: float


class RateLimitStore:
    """Storage backend for window counters."""

    def hit(self, key: str, window_seconds: float, now: float) -> int:
        """Register one hit for key and return the count in the current window."""
        raise NotImplementedError

    def evict_expired(self, now: float) -> int:
        """Remove expired windows. Returns how many records were removed."""
        return 0

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryRateLimitStore(RateLimitStore):
    """Window counters held in a dict owned by one service instance."""

    def __init__(self):
        self._records: Dict[str, RateLimitRecord] = {}

    def hit(self, key: str, window_seconds: float, now: float) -> int:
        record = self._records.get(key)
        if record is None or now > record.reset_at:
            record = RateLimitRecord(count=0, reset_at=now + window_seconds)
            self._records[key] = record
        record.count += 1
        return record.count

    def evict_expired(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if now > record.reset_at]
        for key in expired:
            del self._records[key]
        return len(expired)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class RedisRateLimitStore(RateLimitStore):
    """Window counters shared through Redis; keys expire on their own."""

    def __init__(self, client: Redis, prefix: str = "ratelimit:"):
        self.redis = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisRateLimitStore":
        return cls(Redis.from_url(url, socket_timeout=5, retry_on_timeout=True))

    def hit(self, key: str, window_seconds: float, now: float) -> int:
        redis_key = f"{self.prefix}{key}"
        pipe = self.redis.pipeline()
        pipe.incr(redis_key)
        # NX keeps the expiry of a window that is already running
        pipe.pexpire(redis_key, int(window_seconds * 1000), nx=True)
        count, _ = pipe.execute()
        return int(count)

    def clear(self) -> None:
        for redis_key in self.redis.scan_iter(match=f"{self.prefix}*"):
            self.redis.delete(redis_key)


class FixedWindowRateLimiter:
    """Allow at most N operations per identifier per window."""

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store or InMemoryRateLimitStore()
        self.clock = clock

    def check(self, identifier: str, max_requests: int = 100, window_seconds: float = 60.0) -> bool:
        """
        Count one operation for identifier.

        Args:
            identifier: Key to limit on, e.g. "mood_entry_42" or a client IP
            max_requests: Operations allowed per window
            window_seconds: Window length in seconds

        Returns:
            True if the operation is allowed, False once the limit is exceeded
        """
        count = self.store.hit(identifier, window_seconds, self.clock())
        if count > max_requests:
            logger.warning(
                f"Rate limit exceeded for {identifier}: {count} hits "
                f"(limit {max_requests} per {window_seconds}s)"
            )
            return False
        return True

    def evict_expired(self) -> int:
        removed = self.store.evict_expired(self.clock())
        if removed:
            logger.debug(f"Evicted {removed} expired rate limit records")
        return removed

    def reset(self) -> None:
        """Reset rate limiter state"""
        self.store.clear()
        logger.debug("Rate limiter reset to initial state")


def create_rate_limiter(backend: str = "memory", redis_url: Optional[str] = None) -> FixedWindowRateLimiter:
    """Build a limiter for the configured backend."""
    if backend == "redis":
        if not redis_url:
            raise ValueError("REDIS_URL is required for the redis rate limit backend")
        logger.info("Using Redis rate limit store")
        return FixedWindowRateLimiter(RedisRateLimitStore.from_url(redis_url))
    return FixedWindowRateLimiter(InMemoryRateLimitStore())
