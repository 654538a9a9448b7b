"""
Fixed-window rate limiter.

The counter map lives in an explicit store object handed to routes via
the `get_rate_limiter` dependency, so a shared cache can replace it in a
multi-instance deployment by overriding the dependency.

Best-effort: counters are per process.
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from kdle.core.errors import RateLimitExceededError


@dataclass
class RateLimitResult:
    success: bool
    remaining: int
    reset_at: float  # epoch seconds


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    In-memory fixed-window counters keyed by identifier.

    `capacity` bounds the number of tracked keys (oldest evicted first).
    Expired windows are swept at most once every `sweep_interval` seconds.
    """

    def __init__(
        self,
        capacity: int = 10_000,
        sweep_interval: float = 600.0,
        clock: Callable[[], float] = time.time,
    ):
        self.capacity = capacity
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._windows: OrderedDict[str, _Window] = OrderedDict()
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str, limit: int = 10, window_seconds: float = 60.0) -> RateLimitResult:
        """Count one request for `key` and report whether it is allowed."""
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)
            current = self._windows.get(key)

            if current is None or now > current.reset_at:
                reset_at = now + window_seconds
                self._windows[key] = _Window(count=1, reset_at=reset_at)
                self._windows.move_to_end(key)
                self._evict_overflow()
                return RateLimitResult(success=True, remaining=limit - 1, reset_at=reset_at)

            if current.count >= limit:
                return RateLimitResult(success=False, remaining=0, reset_at=current.reset_at)

            current.count += 1
            return RateLimitResult(
                success=True,
                remaining=limit - current.count,
                reset_at=current.reset_at,
            )

    def enforce(self, key: str, limit: int = 10, window_seconds: float = 60.0) -> RateLimitResult:
        """Like `hit`, but raises RateLimitExceededError when over the limit."""
        result = self.hit(key, limit, window_seconds)
        if not result.success:
            retry_after = max(1, int(result.reset_at - self._clock() + 0.999))
            raise RateLimitExceededError(
                remaining=result.remaining,
                reset_at=result.reset_at,
                retry_after=retry_after,
            )
        return result

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    # --- internals (caller holds the lock) ---

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.sweep_interval:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in expired:
            del self._windows[k]
        self._last_sweep = now
        return len(expired)

    def _evict_overflow(self) -> None:
        while len(self._windows) > self.capacity:
            self._windows.popitem(last=False)


_default_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _default_limiter
