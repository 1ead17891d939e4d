"""Per-client token buckets for the login endpoint.

Each client key gets a bucket of ``capacity`` attempts. The bucket does not
drip tokens back one by one: whenever a window of ``window`` length has
elapsed since the bucket was created, it is reset to full capacity in one
step. Windows are anchored at bucket creation, so a client that burns its
five attempts at minute 14 of a window gets them back one minute later.

Buckets are created on first sight of a key and kept for the process
lifetime unless a sweep interval is configured.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class RateBucket:
    capacity: int
    tokens_remaining: int
    next_refill_at: float
    retired: bool = False  # removed from the table by a sweep
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def refill(self, now: float, window: float) -> None:
        """Reset to full capacity if one or more windows have elapsed. Caller holds the lock."""
        if now < self.next_refill_at:
            return
        elapsed_windows = math.floor((now - self.next_refill_at) / window) + 1
        self.next_refill_at += elapsed_windows * window
        self.tokens_remaining = self.capacity


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float  # seconds until the bucket is refilled; 0 when allowed


class LoginRateLimiter:
    """Discrete-refill token bucket keyed by client address."""

    def __init__(
        self,
        capacity: int = 5,
        window: timedelta = timedelta(minutes=15),
        *,
        sweep_interval: timedelta | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if window.total_seconds() <= 0:
            raise ValueError("window must be positive")
        self.capacity = capacity
        self._window = window.total_seconds()
        self._sweep_interval = sweep_interval.total_seconds() if sweep_interval else None
        self._clock = clock
        self._buckets: dict[str, RateBucket] = {}
        self._table_lock = threading.Lock()
        self._last_sweep = clock()

    def try_acquire(self, client_key: str) -> RateLimitDecision:
        """Consume one attempt for ``client_key`` if any are left in the current window."""
        now = self._clock()
        self._maybe_sweep(now)
        while True:
            bucket = self._get_bucket(client_key, now)
            with bucket.lock:
                if bucket.retired:
                    continue
                bucket.refill(now, self._window)
                if bucket.tokens_remaining > 0:
                    bucket.tokens_remaining -= 1
                    return RateLimitDecision(allowed=True, remaining=bucket.tokens_remaining, retry_after=0.0)
                return RateLimitDecision(allowed=False, remaining=0, retry_after=bucket.next_refill_at - now)

    def sweep(self) -> int:
        """Drop buckets whose refill time has passed.

        Such a bucket would be reset to full on its next use, so forgetting it
        only moves the start of that client's next window.
        """
        now = self._clock()
        with self._table_lock:
            stale = []
            for key, bucket in list(self._buckets.items()):
                with bucket.lock:
                    if bucket.next_refill_at <= now:
                        bucket.retired = True
                        del self._buckets[key]
                        stale.append(key)
            self._last_sweep = now
        if stale:
            logger.debug("login_buckets_swept", removed=len(stale), remaining=len(self._buckets))
        return len(stale)

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._buckets)

    def _get_bucket(self, client_key: str, now: float) -> RateBucket:
        with self._table_lock:
            bucket = self._buckets.get(client_key)
            if bucket is None:
                bucket = RateBucket(
                    capacity=self.capacity,
                    tokens_remaining=self.capacity,
                    next_refill_at=now + self._window,
                )
                self._buckets[client_key] = bucket
            return bucket

    def _maybe_sweep(self, now: float) -> None:
        if self._sweep_interval is not None and now - self._last_sweep >= self._sweep_interval:
            self.sweep()
