"""Tests for the login token bucket limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from matchduo.core.modules.ratelimit.limiter import LoginRateLimiter

WINDOW = 15 * 60


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return LoginRateLimiter(capacity=5, window=timedelta(seconds=WINDOW), clock=clock)


def exhaust(limiter: LoginRateLimiter, key: str, attempts: int = 5) -> None:
    for _ in range(attempts):
        assert limiter.try_acquire(key).allowed


class TestWindow:
    """Tests for capacity and interval refill."""

    def test_five_attempts_then_rejected(self, limiter):
        decisions = [limiter.try_acquire("203.0.113.7") for _ in range(6)]

        assert [d.allowed for d in decisions] == [True] * 5 + [False]
        assert [d.remaining for d in decisions[:5]] == [4, 3, 2, 1, 0]

    def test_rejected_reports_time_until_refill(self, limiter, clock):
        exhaust(limiter, "ip")
        clock.advance(600)

        decision = limiter.try_acquire("ip")

        assert not decision.allowed
        assert decision.retry_after == pytest.approx(WINDOW - 600)

    def test_no_partial_refill_within_window(self, limiter, clock):
        exhaust(limiter, "ip")
        clock.advance(WINDOW - 1)
        assert not limiter.try_acquire("ip").allowed

    def test_full_reset_after_window(self, limiter, clock):
        exhaust(limiter, "ip")
        clock.advance(WINDOW)

        decision = limiter.try_acquire("ip")

        assert decision.allowed
        assert decision.remaining == 4

    def test_windows_stay_anchored_to_bucket_creation(self, limiter, clock):
        exhaust(limiter, "ip")
        clock.advance(3 * WINDOW + 10)
        exhaust(limiter, "ip")

        decision = limiter.try_acquire("ip")

        assert not decision.allowed
        assert decision.retry_after == pytest.approx(WINDOW - 10)

    def test_partial_use_is_topped_up_not_added(self, limiter, clock):
        exhaust(limiter, "ip", attempts=2)
        clock.advance(WINDOW)
        exhaust(limiter, "ip", attempts=5)
        assert not limiter.try_acquire("ip").allowed

    def test_keys_are_independent(self, limiter):
        exhaust(limiter, "a")
        assert not limiter.try_acquire("a").allowed
        assert limiter.try_acquire("b").allowed

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            LoginRateLimiter(capacity=0)
        with pytest.raises(ValueError):
            LoginRateLimiter(window=timedelta(0))


class TestConcurrency:
    """Tests for race-free bucket creation and consumption."""

    def test_only_capacity_attempts_admitted_under_contention(self, limiter):
        barrier = threading.Barrier(32)

        def attempt() -> bool:
            barrier.wait()
            return limiter.try_acquire("198.51.100.1").allowed

        with ThreadPoolExecutor(max_workers=32) as pool:
            results = list(pool.map(lambda _: attempt(), range(32)))

        assert results.count(True) == 5
        assert len(limiter) == 1


class TestSweep:
    """Tests for optional eviction of idle buckets."""

    def test_buckets_kept_without_sweep(self, limiter, clock):
        limiter.try_acquire("a")
        clock.advance(10 * WINDOW)
        limiter.try_acquire("b")
        assert len(limiter) == 2

    def test_sweep_drops_only_buckets_past_refill(self, limiter, clock):
        limiter.try_acquire("old")
        clock.advance(WINDOW)
        limiter.try_acquire("fresh")

        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_swept_client_starts_with_full_bucket(self, limiter, clock):
        exhaust(limiter, "ip")
        clock.advance(WINDOW)
        limiter.sweep()

        assert limiter.try_acquire("ip").remaining == 4

    def test_sweep_runs_on_interval(self, clock):
        limiter = LoginRateLimiter(
            capacity=5, window=timedelta(seconds=WINDOW), sweep_interval=timedelta(seconds=60), clock=clock
        )
        limiter.try_acquire("a")
        clock.advance(WINDOW)
        limiter.try_acquire("b")

        assert len(limiter) == 1
