"""Anonymous request volume limiter.

Secondary abuse control in front of the ingestion gate: each client
(network identity plus user agent) may send a bounded number of submissions
per fixed, epoch-aligned window. Keys are SHA-256 digests so raw addresses
never reach the counter backend.

This control fails open. If the counter backend errors or stalls the request
is allowed and a warning is logged; the per-reporter cooldown enforced by the
report store still applies.
"""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone

from beachradar.application.ports.rate_limiter import (
    RateLimiterPort,
    RateLimitResult,
    window_end_for,
    window_start_for,
)
from beachradar.application.services.base import LoggingMixin
from beachradar.config.report_config import (
    DEFAULT_VOLUME_LIMIT_CONFIG,
    VolumeLimitConfig,
)
from beachradar.domain.errors.rate_limit import VolumeLimitExceededError
from beachradar.domain.errors.store import RateLimiterUnavailableError
from beachradar.infrastructure.monitoring.metrics import MetricsCollector

__all__ = [
    "ClientContext",
    "VolumeLimitService",
    "build_window_key",
    "window_start_for",
]

# Upper bound on a limiter round trip before failing open
LIMITER_TIMEOUT_SECONDS = 1.0


@dataclass(frozen=True)
class ClientContext:
    """Transport-level facts about the submitting client.

    Attributes:
        network_identity: Client IP address as seen by the server, if known.
        user_agent: Raw User-Agent header, if any.
    """

    network_identity: str | None = None
    user_agent: str | None = None


def build_window_key(
    network_identity: str | None,
    user_agent: str | None,
    window_start: datetime,
) -> str:
    """Hash a client and window into an opaque counter key.

    Args:
        network_identity: Client IP, "unknown" when missing.
        user_agent: Client agent, "unknown" when missing.
        window_start: Start of the current window.

    Returns:
        Hex SHA-256 digest.
    """
    material = "|".join(
        (
            network_identity or "unknown",
            user_agent or "unknown",
            str(int(window_start.timestamp())),
        )
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class VolumeLimitService(LoggingMixin):
    """Applies the fixed-window volume limit to anonymous submissions."""

    def __init__(
        self,
        limiter: RateLimiterPort,
        config: VolumeLimitConfig = DEFAULT_VOLUME_LIMIT_CONFIG,
        metrics: MetricsCollector | None = None,
        timeout_seconds: float = LIMITER_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the volume limit service.

        Args:
            limiter: Counter backend.
            config: Window budget configuration.
            metrics: Optional collector for limiter outcome counters.
            timeout_seconds: Limiter deadline before failing open.
        """
        self._limiter = limiter
        self._config = config
        self._metrics = metrics
        self._timeout_seconds = timeout_seconds
        self._init_logger(component="abuse-control")

    def _record(self, result: str) -> None:
        if self._metrics is not None:
            self._metrics.increment_volume_limit_checks(result)

    def _allow_unchecked(self, now: datetime) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            current_count=0,
            limit=self._config.max_requests,
            reset_at=window_end_for(now, self._config.window_seconds),
        )

    async def check(
        self, client: ClientContext, now: datetime | None = None
    ) -> RateLimitResult:
        """Consume one unit of the client's window budget.

        Args:
            client: Submitting client.
            now: Evaluation time (defaults to current UTC time).

        Returns:
            RateLimitResult for the request.

        Raises:
            VolumeLimitExceededError: If the client exhausted its window budget.
        """
        now = now or datetime.now(timezone.utc)
        if not self._config.enabled:
            return self._allow_unchecked(now)

        window_seconds = self._config.window_seconds
        key = build_window_key(
            client.network_identity,
            client.user_agent,
            window_start_for(now, window_seconds),
        )
        log = self._log_operation("check_volume_limit")

        try:
            result = await asyncio.wait_for(
                self._limiter.check_and_consume(
                    key,
                    limit=self._config.max_requests,
                    window_seconds=window_seconds,
                    now=now,
                ),
                timeout=self._timeout_seconds,
            )
        except (RateLimiterUnavailableError, asyncio.TimeoutError, OSError) as exc:
            log.warning("volume_limit_failed_open", error=str(exc) or type(exc).__name__)
            self._record("failed_open")
            return self._allow_unchecked(now)

        if not result.allowed:
            log.warning(
                "volume_limit_exceeded",
                current_count=result.current_count,
                limit=result.limit,
                reset_at=result.reset_at.isoformat(),
                retry_after_seconds=result.retry_after_seconds,
            )
            self._record("blocked")
            raise VolumeLimitExceededError(
                limit=result.limit,
                reset_at=result.reset_at,
                retry_after_seconds=result.retry_after_seconds,
            )

        self._record("allowed")
        return result
