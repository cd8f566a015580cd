"""Per-endpoint request quotas over a fixed one-minute window."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from docbuf.errors import RateLimitExceeded
from docbuf.observability.logging import get_logger
from docbuf.observability.metrics import record_metric

logger = get_logger(__name__)

WINDOW_SECONDS = 60.0

Clock = Callable[[], float]


class RateLimiter:
    """
    Fixed-window counter shared by every caller of one endpoint.

    The window opens on the first acquisition and resets once ``window``
    seconds have elapsed. Exceeding the quota never blocks; it raises
    :class:`RateLimitExceeded` (or returns ``False`` from :meth:`try_acquire`).
    """

    def __init__(
        self,
        limit: int,
        *,
        window: float = WINDOW_SECONDS,
        clock: Clock = time.monotonic,
        name: str = "",
    ):
        if limit <= 0:
            raise ValueError(f"Rate limit must be positive, got {limit}")
        if window <= 0:
            raise ValueError(f"Rate limit window must be positive, got {window}")
        self.limit = limit
        self.window = window
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._window_start: Optional[float] = None
        self._count = 0

    def _roll(self, now: float) -> None:
        if self._window_start is None or now - self._window_start >= self.window:
            self._window_start = now
            self._count = 0

    def _take(self) -> Tuple[bool, float]:
        with self._lock:
            now = self._clock()
            self._roll(now)
            if self._count < self.limit:
                self._count += 1
                return True, 0.0
            return False, max(0.0, self._window_start + self.window - now)

    def try_acquire(self) -> bool:
        allowed, _ = self._take()
        if not allowed:
            self._rejected()
        return allowed

    def acquire(self) -> None:
        allowed, retry_after = self._take()
        if not allowed:
            self._rejected()
            raise RateLimitExceeded(
                f"Endpoint '{self.name}' allows {self.limit} request(s) per minute",
                endpoint=self.name,
                limit=self.limit,
                retry_after=retry_after,
            )

    @property
    def remaining(self) -> int:
        with self._lock:
            self._roll(self._clock())
            return self.limit - self._count

    def reset(self) -> None:
        with self._lock:
            self._window_start = None
            self._count = 0

    def _rejected(self) -> None:
        record_metric("docbuf.ratelimit.rejected", 1.0, tags={"endpoint": self.name, "limit": str(self.limit)})
        logger.debug("rate limit reached for %s (%d per window)", self.name, self.limit)


class RateLimitRegistry:
    """Lazily creates one :class:`RateLimiter` per (process, endpoint)."""

    def __init__(self, *, window: float = WINDOW_SECONDS, clock: Clock = time.monotonic):
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._limiters: Dict[Tuple[str, str], RateLimiter] = {}

    def limiter(self, process: str, endpoint: str, limit: Optional[int]) -> Optional[RateLimiter]:
        """Return the shared limiter, or ``None`` for endpoints without a quota."""
        if limit is None:
            return None
        key = (process, endpoint)
        with self._lock:
            limiter = self._limiters.get(key)
            if limiter is None:
                limiter = RateLimiter(limit, window=self.window, clock=self._clock, name=f"{process}.{endpoint}")
                self._limiters[key] = limiter
            return limiter

    def for_endpoint(self, descriptor) -> Optional[RateLimiter]:
        return self.limiter(descriptor.process, descriptor.name, descriptor.rate_limit)

    def acquire(self, descriptor) -> None:
        limiter = self.for_endpoint(descriptor)
        if limiter is not None:
            limiter.acquire()

    def try_acquire(self, descriptor) -> bool:
        limiter = self.for_endpoint(descriptor)
        return True if limiter is None else limiter.try_acquire()

    def reset(self) -> None:
        with self._lock:
            for limiter in self._limiters.values():
                limiter.reset()


__all__ = ["WINDOW_SECONDS", "RateLimiter", "RateLimitRegistry"]
