"""In-memory TTL cache with lazy expiry and a periodic background sweep.

Entries carry an absolute expiry timestamp. Reads always re-check expiry, so
the background sweep only reclaims memory and never affects correctness.
Per-process only: each worker holds its own cache.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Hashable

from app.utils.periodic import PeriodicSweeper

logger = logging.getLogger(__name__)


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    expires_at: float


class ExpiringCache:
    """Thread-safe, in-memory cache where every entry expires after a TTL.

    Attributes:
        default_ttl: TTL in seconds used when ``set`` is called without one.
        hits: Number of successful ``get`` calls.
        misses: Number of ``get`` calls that found nothing or an expired entry.

    Calling ``set`` after ``destroy()`` is unsupported; it is ignored and
    logged rather than raising.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        *,
        sweep_interval: float | None = 60.0,
        sweep_batch_size: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache and start its background sweep.

        Args:
            default_ttl: TTL in seconds for entries set without an explicit TTL.
            sweep_interval: Seconds between background sweeps. ``None`` disables
                the background thread; ``sweep()`` can still be called directly.
            sweep_batch_size: Maximum keys deleted per lock acquisition.
            clock: Time source returning seconds. Monotonic by default so
                wall-clock adjustments do not stretch or shorten TTLs.

        Raises:
            ValueError: If default_ttl or sweep_batch_size are invalid.
        """
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        if sweep_batch_size < 1:
            raise ValueError("sweep_batch_size must be >= 1")

        self._default_ttl = default_ttl
        self._batch_size = sweep_batch_size
        self._clock = clock
        self._store: dict[Hashable, CacheItem] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._destroyed = False

        self._sweeper: PeriodicSweeper | None = None
        if sweep_interval is not None:
            self._sweeper = PeriodicSweeper("cache", sweep_interval, self.sweep)
            self._sweeper.start()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ExpiringCache(default_ttl={self._default_ttl}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses})"
        )

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key.
            value: Any value; stored as-is.
            ttl: Seconds until expiry. Falls back to ``default_ttl`` when None.
        """

        effective_ttl = self._default_ttl if ttl is None else ttl

        with self._lock:
            if self._destroyed:
                logger.warning("cache.set_after_destroy", extra={"cache_key": str(key)[:32]})
                return
            self._store[key] = CacheItem(value=value, expires_at=self._clock() + effective_ttl)

        logger.debug(
            "cache.set",
            extra={"cache_key": str(key)[:32], "ttl_s": effective_ttl},
        )

    def get(self, key: Hashable) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                reason = "not_found"
            elif self._is_expired(item):
                del self._store[key]
                self._misses += 1
                reason = "expired"
            else:
                self._hits += 1
                logger.debug("cache.hit", extra={"cache_key": str(key)[:32]})
                return item.value

        logger.debug("cache.miss", extra={"cache_key": str(key)[:32], "reason": reason})
        return None

    def has(self, key: Hashable) -> bool:
        """Return whether a live entry exists, without touching hit/miss counters."""

        with self._lock:
            item = self._store.get(key)
            if item is None:
                return False
            if self._is_expired(item):
                del self._store[key]
                return False
            return True

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        """Remove all entries. Hit/miss counters are cumulative and kept."""

        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet swept."""

        with self._lock:
            return len(self._store)

    def get_stats(self) -> dict[str, Any]:
        """Return cache metrics in the shape served by the stats endpoint.

        ``defaultTTL`` is expressed in milliseconds and ``hitRate`` is a string
        with two decimals (``"0.00"`` before any request).
        """

        with self._lock:
            hits = self._hits
            misses = self._misses
            size = len(self._store)

        total_requests = hits + misses
        if total_requests > 0:
            # Ties round half up (0.125 -> "0.13"), not half-to-even
            rate = (Decimal(hits) / Decimal(total_requests)).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            hit_rate = str(rate)
        else:
            hit_rate = "0.00"

        return {
            "size": size,
            "defaultTTL": int(round(self._default_ttl * 1000)),
            "hits": hits,
            "misses": misses,
            "hitRate": hit_rate,
            "totalRequests": total_requests,
        }

    def sweep(self) -> int:
        """Physically remove expired entries.

        Expired keys are collected first, then deleted in batches so the lock
        is released between batches. Each key is re-checked before deletion
        because it may have been overwritten in the meantime.

        Returns:
            Number of entries removed.
        """

        now = self._clock()
        with self._lock:
            candidates = [k for k, item in self._store.items() if now > item.expires_at]

        removed = 0
        for start in range(0, len(candidates), self._batch_size):
            with self._lock:
                for key in candidates[start : start + self._batch_size]:
                    item = self._store.get(key)
                    if item is not None and now > item.expires_at:
                        del self._store[key]
                        removed += 1

        if removed:
            logger.debug("cache.sweep", extra={"removed": removed, "size": self.size()})
        return removed

    def destroy(self) -> None:
        """Stop the background sweep and drop all entries. Idempotent."""

        with self._lock:
            self._destroyed = True
            sweeper, self._sweeper = self._sweeper, None

        if sweeper is not None:
            sweeper.stop()

        self.clear()

    def _is_expired(self, item: CacheItem) -> bool:
        return self._clock() > item.expires_at
