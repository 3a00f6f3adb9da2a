"""Fixed-window rate limiting keyed by caller (IP address)."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

import redis.asyncio as redis
import structlog
from cachetools import TTLCache

logger = structlog.get_logger()


class RateLimiter(Protocol):
    async def check(self, key: str) -> bool:
        """Count one request for ``key``; False once the window is exhausted."""
        ...


@dataclass
class RateLimitRecord:
    count: int
    reset_time: float


class InMemoryRateLimiter:
    """Per-process fixed window.

    The first request opens a window of ``window_seconds``; the window is
    reset lazily by the first request after ``reset_time``. Records live in
    a TTLCache so idle callers are eventually dropped.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 900,
        clock: Callable[[], float] = time.monotonic,
        maxsize: int = 10_000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # Entries outlive their window so the reset_time check decides expiry
        self._records: TTLCache[str, RateLimitRecord] = TTLCache(
            maxsize=maxsize, ttl=window_seconds * 2, timer=clock
        )

    async def check(self, key: str) -> bool:
        now = self._clock()
        record = self._records.get(key)

        if record is None or now > record.reset_time:
            self._records[key] = RateLimitRecord(count=1, reset_time=now + self.window_seconds)
            return True

        if record.count >= self.max_requests:
            logger.info("rate_limit_exceeded", key=key, count=record.count)
            return False

        # Mutated in place so the cache entry keeps its original expiry
        record.count += 1
        return True


class RedisRateLimiter:
    """Fixed window shared between processes.

    SET NX EX opens the window and INCR counts the hit; both go out in one
    MULTI/EXEC, so every counter key carries an expiry.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_requests: int = 5,
        window_seconds: int = 900,
        prefix: str = "ratelimit:contact:",
    ):
        self.redis = redis_client
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix

    async def check(self, key: str) -> bool:
        redis_key = f"{self.prefix}{key}"
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(redis_key, 0, ex=self.window_seconds, nx=True)
        pipe.incr(redis_key)
        _, count = await pipe.execute()

        if count > self.max_requests:
            logger.info("rate_limit_exceeded", key=key, count=count)
            return False
        return True
