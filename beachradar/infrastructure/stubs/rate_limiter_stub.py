"""In-memory fixed-window rate limiter.

Counters live in this process only, so the limit is per instance. Suitable
for single process deployments, local development and tests; horizontally
scaled deployments use PostgresRateLimiter.
"""

from __future__ import annotations

import asyncio
import math
import threading
from datetime import datetime, timezone

from beachradar.application.ports.rate_limiter import (
    RateLimitResult,
    window_end_for,
)

# Counters kept before expired windows are swept on write
DEFAULT_MAX_KEYS = 10_000


class InMemoryRateLimiter:
    """Process-local implementation of RateLimiterPort.

    The check and the increment happen under one lock, so concurrent requests
    for a key are counted exactly once each.

    Attributes:
        _counters: key -> (window_end, count).
        _max_keys: Soft bound on tracked keys.
    """

    def __init__(self, max_keys: int = DEFAULT_MAX_KEYS) -> None:
        """Initialize the in-memory limiter.

        Args:
            max_keys: Tracked key count that triggers a sweep of ended windows.
        """
        self._max_keys = max_keys
        self._counters: dict[str, tuple[datetime, int]] = {}
        self._lock = threading.Lock()
        self._failure: Exception | None = None
        self._delay_seconds = 0.0

    async def check_and_consume(
        self,
        key: str,
        limit: int,
        window_seconds: int,
        now: datetime | None = None,
    ) -> RateLimitResult:
        """Count one request against key.

        Args:
            key: Counter key.
            limit: Requests allowed per window.
            window_seconds: Window length.
            now: Evaluation time (defaults to current UTC time).

        Returns:
            RateLimitResult for this request.
        """
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        if self._failure is not None:
            raise self._failure

        now = now or datetime.now(timezone.utc)
        reset_at = window_end_for(now, window_seconds)

        with self._lock:
            stored = self._counters.get(key)
            count = stored[1] if stored and stored[0] == reset_at else 0
            if count >= limit:
                retry_after = max(1, math.ceil((reset_at - now).total_seconds()))
                return RateLimitResult(
                    allowed=False,
                    current_count=count,
                    limit=limit,
                    reset_at=reset_at,
                    retry_after_seconds=retry_after,
                )
            if stored is None and len(self._counters) >= self._max_keys:
                self._sweep_locked(now)
            self._counters[key] = (reset_at, count + 1)

        return RateLimitResult(
            allowed=True,
            current_count=count + 1,
            limit=limit,
            reset_at=reset_at,
        )

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Drop counters whose window has ended."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: datetime) -> int:
        expired = [
            key
            for key, (window_end, _count) in self._counters.items()
            if window_end <= now
        ]
        for key in expired:
            del self._counters[key]
        return len(expired)

    # Test helper methods

    def fail_with(self, error: Exception | None) -> None:
        """Make every check raise error (None restores normal behaviour)."""
        self._failure = error

    def set_delay(self, seconds: float) -> None:
        """Delay every check by seconds (simulates a slow backend)."""
        self._delay_seconds = seconds

    def tracked_keys(self) -> int:
        """Number of counters currently held."""
        with self._lock:
            return len(self._counters)

    def clear(self) -> None:
        """Drop all counters."""
        with self._lock:
            self._counters.clear()
