"""Report retention job.

Deletes reports older than the retention window, or only counts them in dry
run mode. Also drops expired volume-limiter windows when a shared limiter is
configured.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from beachradar.application.ports.rate_limiter import RateLimiterPort
from beachradar.application.ports.report_store import ReportStorePort
from beachradar.application.services.base import LoggingMixin
from beachradar.application.services.store_guard import call_store
from beachradar.config.report_config import RetentionConfig
from beachradar.domain.errors.store import RateLimiterUnavailableError

# Pruning scans the whole table; allow it more time than a request path read.
PRUNE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class PruneResult:
    """Outcome of a retention run.

    Attributes:
        dry_run: True if nothing was deleted.
        affected: Candidate count (dry run) or deleted count.
        retention_days: Retention window applied.
        cutoff: Reports created before this instant were affected.
        expired_windows_purged: Limiter windows dropped (0 on dry run).
    """

    dry_run: bool
    affected: int
    retention_days: int
    cutoff: datetime
    expired_windows_purged: int = 0


def read_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer ") :].strip()
    return token or None


class ReportRetentionService(LoggingMixin):
    """Prunes reports past the retention window."""

    def __init__(
        self,
        store: ReportStorePort,
        config: RetentionConfig,
        limiter: RateLimiterPort | None = None,
        timeout_seconds: float = PRUNE_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._config = config
        self._limiter = limiter
        self._timeout_seconds = timeout_seconds
        self._init_logger(component="retention")

    def is_authorized(self, authorization: str | None) -> bool:
        """Check an Authorization header against the configured prune token.

        Returns False when no token is configured.
        """
        expected = self._config.prune_token
        token = read_bearer_token(authorization)
        if expected is None or token is None:
            return False
        return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))

    async def prune(
        self, dry_run: bool = False, now: datetime | None = None
    ) -> PruneResult:
        """Count or delete reports older than the retention window.

        Args:
            dry_run: Only count candidates.
            now: Evaluation time (defaults to current UTC time).

        Returns:
            PruneResult describing the run.

        Raises:
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        now = now or datetime.now(timezone.utc)
        retention_days = self._config.retention_days
        cutoff = now - timedelta(days=retention_days)
        log = self._log_operation(
            "prune_reports", dry_run=dry_run, cutoff=cutoff.isoformat()
        )

        if dry_run:
            count = await call_store(
                "count_older_than",
                self._store.count_older_than(cutoff),
                self._timeout_seconds,
                log,
            )
            log.info("prune_dry_run", candidate_count=count)
            return PruneResult(
                dry_run=True,
                affected=count,
                retention_days=retention_days,
                cutoff=cutoff,
            )

        deleted = await call_store(
            "delete_older_than",
            self._store.delete_older_than(cutoff),
            self._timeout_seconds,
            log,
        )

        purged = 0
        if self._limiter is not None:
            try:
                purged = await self._limiter.purge_expired(now)
            except RateLimiterUnavailableError as exc:
                log.warning("limiter_purge_failed", error=str(exc))

        log.info("reports_pruned", deleted=deleted, expired_windows_purged=purged)
        return PruneResult(
            dry_run=False,
            affected=deleted,
            retention_days=retention_days,
            cutoff=cutoff,
            expired_windows_purged=purged,
        )
