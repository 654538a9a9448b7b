"""
Tests for the in-memory fixed-window rate limiter.
"""
import pytest

from kdle.core.errors import RateLimitExceededError
from kdle.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, t=1_000.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


@pytest.fixture()
def clock():
    return FakeClock()


class TestHit:
    def test_allows_up_to_limit(self, clock):
        rl = RateLimiter(clock=clock)
        results = [rl.hit("k", limit=3, window_seconds=60) for _ in range(4)]
        assert [r.success for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_window_resets(self, clock):
        rl = RateLimiter(clock=clock)
        for _ in range(3):
            rl.hit("k", limit=3, window_seconds=60)
        assert not rl.hit("k", limit=3, window_seconds=60).success
        clock.advance(61)
        r = rl.hit("k", limit=3, window_seconds=60)
        assert r.success
        assert r.remaining == 2
        assert r.reset_at == clock.t + 60

    def test_keys_are_independent(self, clock):
        rl = RateLimiter(clock=clock)
        assert rl.hit("a", limit=1).success
        assert not rl.hit("a", limit=1).success
        assert rl.hit("b", limit=1).success


class TestEnforce:
    def test_raises_with_retry_after(self, clock):
        rl = RateLimiter(clock=clock)
        rl.enforce("k", limit=1, window_seconds=60)
        clock.advance(20)
        with pytest.raises(RateLimitExceededError) as exc_info:
            rl.enforce("k", limit=1, window_seconds=60)
        err = exc_info.value
        assert err.http_status == 429
        assert err.details["retry_after"] == 40
        headers = err.headers()
        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["Retry-After"] == "40"


class TestHousekeeping:
    def test_capacity_evicts_oldest(self, clock):
        rl = RateLimiter(capacity=2, clock=clock)
        rl.hit("a", limit=1)
        rl.hit("b", limit=1)
        rl.hit("c", limit=1)
        assert len(rl) == 2
        # "a" was evicted so it starts a fresh window
        assert rl.hit("a", limit=1).success

    def test_sweep_drops_expired(self, clock):
        rl = RateLimiter(clock=clock)
        rl.hit("short", limit=5, window_seconds=10)
        rl.hit("long", limit=5, window_seconds=600)
        clock.advance(30)
        assert rl.sweep() == 1
        assert len(rl) == 1

    def test_periodic_sweep_on_hit(self, clock):
        rl = RateLimiter(sweep_interval=100, clock=clock)
        rl.hit("old", limit=5, window_seconds=10)
        clock.advance(150)
        rl.hit("new", limit=5, window_seconds=10)
        assert len(rl) == 1

    def test_clear(self, clock):
        rl = RateLimiter(clock=clock)
        rl.hit("k", limit=1)
        rl.clear()
        assert len(rl) == 0
