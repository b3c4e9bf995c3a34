"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check-and-increment.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_time: Limiter clock time (seconds, monotonic by default) at which
            the current window ends.
        reset_at: UNIX epoch seconds when the current window ends, for headers.
        limit: Max requests per window.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    remaining: int
    reset_time: float
    reset_at: int
    limit: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def is_allowed(self, identifier: str) -> RateLimitResult:
        """Decide whether a request from ``identifier`` is admitted.

        Args:
            identifier: Unique client identifier (e.g., IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def consume(self, key: str) -> RateLimitResult:
        """Consume one unit of budget for ``key``."""
        return self.is_allowed(key)

    @abstractmethod
    def get_size(self) -> int:
        """Number of identifiers currently tracked."""
        raise NotImplementedError

    @abstractmethod
    def destroy(self) -> None:
        """Release background resources and forget all identifiers."""
        raise NotImplementedError
