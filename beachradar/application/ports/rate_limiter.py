"""Rate Limiter port for the anonymous fixed-window volume limiter.

One operation, check_and_consume, performs the limit check and the counter
increment together. Implementations must make it atomic per key: two
concurrent requests must not both observe "under limit" and both proceed.

Strategies:
- InMemoryRateLimiter: single process deployments and tests only.
- PostgresRateLimiter: shared atomic counter for horizontally scaled deployments.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        current_count: Requests counted in the window, including this one.
        limit: Configured maximum per window.
        reset_at: When the window ends.
        retry_after_seconds: Seconds until the window ends when rejected,
            0 when allowed.
    """

    allowed: bool
    current_count: int
    limit: int
    reset_at: datetime
    retry_after_seconds: int = 0

    @property
    def remaining(self) -> int:
        """Requests left in the current window."""
        return max(0, self.limit - self.current_count)


def window_start_for(now: datetime, window_seconds: int) -> datetime:
    """Start of the fixed window containing `now`, aligned to the Unix epoch.

    Args:
        now: Timezone-aware instant.
        window_seconds: Window length.

    Returns:
        UTC datetime of the window start.
    """
    epoch_seconds = int(now.timestamp())
    start = epoch_seconds - (epoch_seconds % window_seconds)
    return datetime.fromtimestamp(start, tz=timezone.utc)


def window_end_for(now: datetime, window_seconds: int) -> datetime:
    """End of the fixed window containing `now`."""
    return window_start_for(now, window_seconds) + timedelta(seconds=window_seconds)


@runtime_checkable
class RateLimiterPort(Protocol):
    """Protocol for fixed-window rate limiting.

    Usage:
        result = await limiter.check_and_consume(key, limit=25, window_seconds=600)
        if not result.allowed:
            raise VolumeLimitExceededError(...)
    """

    async def check_and_consume(
        self,
        key: str,
        limit: int,
        window_seconds: int,
        now: datetime | None = None,
    ) -> RateLimitResult:
        """Count one request against key and report whether it is allowed.

        A key may consume `limit` requests per window. Further requests in the
        same window are rejected with retry_after_seconds equal to the time
        left in the window (at least 1).

        Args:
            key: Opaque counter key.
            limit: Maximum requests per window.
            window_seconds: Window length.
            now: Evaluation time (defaults to current UTC time).

        Returns:
            RateLimitResult for this request.

        Raises:
            RateLimiterUnavailableError: If a shared counter cannot be reached.
        """
        ...

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Drop counters whose window has ended.

        Returns:
            Number of counters removed.
        """
        ...
