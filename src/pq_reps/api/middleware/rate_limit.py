"""
Rate limiting -- token bucket per client IP.

Each client starts with a full bucket of `capacity` tokens; every request
spends one and tokens refill continuously at `refill_per_second`. Idle
buckets are dropped after `bucket_ttl` seconds (swept at most once per
`cleanup_interval`), and `max_buckets` optionally caps memory by evicting the
least recently seen client.

In-memory only. For multiple replicas, replace with a Redis-backed limiter.

Configuration via environment:
  RATE_LIMIT_CAPACITY=60               (burst size per IP)
  RATE_LIMIT_REFILL_PER_SECOND=1       (default: capacity / 60)
  RATE_LIMIT_MAX_BUCKETS=0             (0 = unbounded)
"""

import logging
import math
import os
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from ..errors import ApiError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 60.0
DEFAULT_BUCKET_TTL_SECONDS = 10 * 60.0
DEFAULT_CLEANUP_INTERVAL_SECONDS = 60.0


def _get_float(name: str, fallback: float, allow_zero: bool = False) -> float:
    try:
        value = float(os.environ.get(name, ""))
    except ValueError:
        return fallback
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        return fallback
    return value


@dataclass
class _Bucket:
    tokens: float
    last_refill: float
    last_seen: float


class TokenBucketLimiter:
    """
    Usage:
        limiter = TokenBucketLimiter(capacity=5, refill_per_second=1)
        if not limiter.is_allowed(client_ip):
            ...  # reject
    """

    def __init__(
        self,
        capacity: float = DEFAULT_CAPACITY,
        refill_per_second: float | None = None,
        bucket_ttl: float = DEFAULT_BUCKET_TTL_SECONDS,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        max_buckets: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.capacity = capacity if capacity > 0 else DEFAULT_CAPACITY
        self.refill_per_second = (
            refill_per_second if refill_per_second and refill_per_second > 0
            else self.capacity / 60
        )
        self.bucket_ttl = max(bucket_ttl, 0.0)
        self.cleanup_interval = max(cleanup_interval, 0.0)
        self.max_buckets = max(int(max_buckets), 0)
        self._clock = clock
        self._buckets: OrderedDict[str, _Bucket] = OrderedDict()
        self._last_cleanup = 0.0

    @classmethod
    def from_env(cls) -> "TokenBucketLimiter":
        capacity = _get_float("RATE_LIMIT_CAPACITY", DEFAULT_CAPACITY)
        return cls(
            capacity=capacity,
            refill_per_second=_get_float("RATE_LIMIT_REFILL_PER_SECOND", capacity / 60),
            max_buckets=int(_get_float("RATE_LIMIT_MAX_BUCKETS", 0, allow_zero=True)),
        )

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)

    def retry_after(self, key: str) -> int:
        """Whole seconds until `key` has one token again."""
        bucket = self._buckets.get(key)
        if bucket is None or bucket.tokens >= 1:
            return 0
        return max(1, math.ceil((1 - bucket.tokens) / self.refill_per_second))

    def is_allowed(self, key: str) -> bool:
        now = self._clock()
        self._cleanup(now)

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=self.capacity, last_refill=now, last_seen=now)
        self._refill(bucket, now)

        allowed = bucket.tokens >= 1
        if allowed:
            bucket.tokens -= 1

        bucket.last_seen = now
        self._buckets[key] = bucket
        self._buckets.move_to_end(key)
        self._enforce_max_buckets()
        return allowed

    def _refill(self, bucket: _Bucket, now: float) -> None:
        elapsed = max(0.0, now - bucket.last_refill)
        if elapsed == 0:
            return
        bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.refill_per_second)
        bucket.last_refill = now

    def _cleanup(self, now: float) -> None:
        if self.bucket_ttl == 0 or self.cleanup_interval == 0:
            return
        if now - self._last_cleanup < self.cleanup_interval:
            return
        self._last_cleanup = now
        expired = [k for k, b in self._buckets.items() if now - b.last_seen > self.bucket_ttl]
        for key in expired:
            del self._buckets[key]
        if expired:
            logger.debug(f"[RateLimit] Dropped {len(expired)} idle buckets")

    def _enforce_max_buckets(self) -> None:
        if self.max_buckets == 0:
            return
        while len(self._buckets) > self.max_buckets:
            self._buckets.popitem(last=False)


async def check_rate_limit(request: Request) -> None:
    """
    Reject the request with 429 when the client's bucket is empty.

    Use as a router dependency. The limiter lives on app.state so each app
    (and each test client) gets its own buckets.
    """
    limiter: TokenBucketLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    client_ip = request.client.host if request.client else "unknown"
    if limiter.is_allowed(client_ip):
        return

    retry_after = limiter.retry_after(client_ip)
    logger.warning(f"[RateLimit] Client {client_ip} exceeded {limiter.capacity:g} request burst")
    raise ApiError(
        429,
        "rate_limited",
        details={"retryAfterSeconds": retry_after},
        headers={"Retry-After": str(retry_after)},
    )
