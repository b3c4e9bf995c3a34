"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: the check-and-increment runs under a single lock.
- Windows are anchored at each identifier's first request, so bursts of up
  to twice the limit are possible around a window boundary.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.utils.periodic import PeriodicSweeper

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_time: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per identifier.

    The first request from an identifier opens a window of ``window_seconds``.
    Up to ``max_requests`` requests are admitted inside it; further requests
    are rejected without being counted. The first request after the window
    ends opens a fresh one.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        max_requests: int = 100,
        window_seconds: float = 15 * 60,
        sweep_interval: float | None = 60.0,
        sweep_batch_size: int = 500,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            max_requests: Maximum number of admitted requests per window.
            window_seconds: Size of the fixed window in seconds.
            sweep_interval: Seconds between background purges of ended
                windows. ``None`` disables the background thread.
            sweep_batch_size: Maximum identifiers deleted per lock acquisition.
            clock: Time source for window bookkeeping. Monotonic by default so
                wall-clock adjustments do not stretch or shorten windows.
            wall_clock: UNIX time source, used only to report ``reset_at``.

        Raises:
            ValueError: If max_requests, window_seconds or sweep_batch_size
                are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if sweep_batch_size < 1:
            raise ValueError("sweep_batch_size must be >= 1")

        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._batch_size = sweep_batch_size
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._destroyed = False

        self._sweeper: PeriodicSweeper | None = None
        if sweep_interval is not None:
            self._sweeper = PeriodicSweeper("rate_limit", sweep_interval, self.sweep)
            self._sweeper.start()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _to_epoch(self, *, now: float, reset_time: float) -> int:
        """Translate a limiter-clock instant into UNIX epoch seconds."""
        return int(math.ceil(self._wall_clock() + (reset_time - now)))

    def _build_allowed_result(
        self, *, now: float, remaining: int, reset_time: float
    ) -> RateLimitResult:
        """Build a RateLimitResult for an allowed request."""
        return RateLimitResult(
            allowed=True,
            remaining=remaining,
            reset_time=reset_time,
            reset_at=self._to_epoch(now=now, reset_time=reset_time),
            limit=self._max_requests,
        )

    def _build_blocked_result(self, *, now: float, reset_time: float) -> RateLimitResult:
        """Build a RateLimitResult for a blocked request."""
        retry_after = max(0, int(math.ceil(reset_time - now)))
        return RateLimitResult(
            allowed=False,
            remaining=0,
            reset_time=reset_time,
            reset_at=self._to_epoch(now=now, reset_time=reset_time),
            limit=self._max_requests,
            retry_after_seconds=retry_after,
        )

    def is_allowed(self, identifier: str) -> RateLimitResult:
        """Check and, when admitted, count a request for ``identifier``.

        Args:
            identifier: Unique identifier for rate limiting (e.g., client IP).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        with self._lock:
            now = self._clock()

            if self._destroyed:
                logger.warning("rate_limit.used_after_destroy")
                return self._build_allowed_result(
                    now=now,
                    remaining=self._max_requests - 1,
                    reset_time=now + self._window_seconds,
                )

            state = self._state_by_key.get(identifier)
            if state is None or now >= state.reset_time:
                state = _WindowState(count=1, reset_time=now + self._window_seconds)
                self._state_by_key[identifier] = state
                return self._build_allowed_result(
                    now=now,
                    remaining=self._max_requests - 1,
                    reset_time=state.reset_time,
                )

            if state.count >= self._max_requests:
                return self._build_blocked_result(now=now, reset_time=state.reset_time)

            state.count += 1
            return self._build_allowed_result(
                now=now,
                remaining=self._max_requests - state.count,
                reset_time=state.reset_time,
            )

    def get_size(self) -> int:
        """Number of tracked identifiers, including ended windows not yet swept."""
        with self._lock:
            return len(self._state_by_key)

    def sweep(self) -> int:
        """Forget identifiers whose window has ended.

        Returns:
            Number of identifiers removed.
        """
        now = self._clock()
        with self._lock:
            candidates = [
                key for key, state in self._state_by_key.items() if now >= state.reset_time
            ]

        removed = 0
        for start in range(0, len(candidates), self._batch_size):
            with self._lock:
                for key in candidates[start : start + self._batch_size]:
                    state = self._state_by_key.get(key)
                    if state is not None and now >= state.reset_time:
                        del self._state_by_key[key]
                        removed += 1

        if removed:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": removed, "tracked": self.get_size()},
            )
        return removed

    def destroy(self) -> None:
        """Stop the background sweep and forget all identifiers. Idempotent."""
        with self._lock:
            self._destroyed = True
            sweeper, self._sweeper = self._sweeper, None

        if sweeper is not None:
            sweeper.stop()

        with self._lock:
            self._state_by_key.clear()
