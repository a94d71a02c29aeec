from __future__ import annotations

import logging
import os
import random
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from redis import Redis
from starlette.requests import Request

from app.infra.redis_state import get_redis
from app.infra.request_context import client_ip

logger = logging.getLogger(__name__)

RATE_LIMIT_STORE = os.getenv("RATE_LIMIT_STORE", "memory").lower()
LOGIN_RATE_LIMIT_ENABLED = os.getenv("LOGIN_RATE_LIMIT_ENABLED", "true").lower() in {"1", "true", "yes"}
API_RATE_LIMIT_ENABLED = os.getenv("API_RATE_LIMIT_ENABLED", "false").lower() in {"1", "true", "yes"}

SWEEP_PROBABILITY = 0.01


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float


class RateLimiter(Protocol):
    max_requests: int
    window_seconds: float

    def limit(self, key: str) -> RateLimitResult: ...

    def reset_all(self) -> None: ...


class MemoryRateLimiter:
    """Sliding-log limiter kept in process memory.

    Exactly ``max_requests`` calls succeed inside any ``window_seconds`` span
    for one key.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.time,
        sweep_probability: float = SWEEP_PROBABILITY,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_probability = sweep_probability
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def limit(self, key: str) -> RateLimitResult:
        now = self._clock()
        window_start = now - self.window_seconds
        with self._lock:
            if random.random() < self._sweep_probability:
                self._sweep(window_start)

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.max_requests:
                return RateLimitResult(
                    success=False,
                    limit=self.max_requests,
                    remaining=0,
                    reset=hits[0] + self.window_seconds,
                )

            hits.append(now)
            return RateLimitResult(
                success=True,
                limit=self.max_requests,
                remaining=self.max_requests - len(hits),
                reset=hits[0] + self.window_seconds,
            )

    def _sweep(self, window_start: float) -> None:
        expired = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in expired:
            del self._hits[key]

    def reset_all(self) -> None:
        with self._lock:
            self._hits.clear()

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)


class RedisRateLimiter:
    """Sliding window over a Redis sorted set, shared across processes."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        prefix: str,
        redis_client: Redis | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._redis = redis_client
        self._clock = clock

    def _client(self) -> Redis:
        return self._redis if self._redis is not None else get_redis()

    def limit(self, key: str) -> RateLimitResult:
        client = self._client()
        redis_key = f"{self.prefix}:{key}"
        now = self._clock()
        member = f"{now}:{uuid4().hex}"

        pipe = client.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - self.window_seconds)
        pipe.zadd(redis_key, {member: now})
        pipe.zcard(redis_key)
        pipe.expire(redis_key, int(self.window_seconds) + 1)
        _, _, count, _ = pipe.execute()

        oldest = client.zrange(redis_key, 0, 0, withscores=True)
        oldest_score = float(oldest[0][1]) if oldest else now
        reset = oldest_score + self.window_seconds

        if int(count) > self.max_requests:
            client.zrem(redis_key, member)
            return RateLimitResult(success=False, limit=self.max_requests, remaining=0, reset=reset)
        return RateLimitResult(
            success=True,
            limit=self.max_requests,
            remaining=self.max_requests - int(count),
            reset=reset,
        )

    def reset_all(self) -> None:
        client = self._client()
        for redis_key in client.scan_iter(match=f"{self.prefix}:*"):
            client.delete(redis_key)


def build_rate_limiter(max_requests: int, window_seconds: float, *, prefix: str) -> RateLimiter:
    if RATE_LIMIT_STORE == "redis":
        return RedisRateLimiter(max_requests, window_seconds, prefix=prefix)
    if RATE_LIMIT_STORE != "memory":
        logger.warning("unknown RATE_LIMIT_STORE %r, falling back to memory", RATE_LIMIT_STORE)
    return MemoryRateLimiter(max_requests, window_seconds)


login_rate_limiter = build_rate_limiter(5, 15 * 60, prefix="ratelimit:login")
api_rate_limiter = build_rate_limiter(100, 60, prefix="ratelimit:api")
heavy_rate_limiter = build_rate_limiter(10, 60, prefix="ratelimit:heavy")
mutation_rate_limiter = build_rate_limiter(30, 60, prefix="ratelimit:mutation")


def client_identifier(request: Request) -> str:
    return client_ip(request) or "anonymous"


def reset_rate_limiters() -> None:
    for limiter in (login_rate_limiter, api_rate_limiter, heavy_rate_limiter, mutation_rate_limiter):
        limiter.reset_all()
