"""Recent-report feed and consensus reads.

Reads are bounded by the lookback window and row cap, run under the store
deadline and fail closed with ReportStoreUnavailableError. Consensus for many
locations reads the feed once and groups it once.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from beachradar.application.ports.report_store import ReportStorePort
from beachradar.application.services.base import LoggingMixin
from beachradar.application.services.store_guard import call_store
from beachradar.config.report_config import (
    DEFAULT_FEED_CONFIG,
    DEFAULT_REPORT_INGESTION_CONFIG,
    FeedConfig,
)
from beachradar.domain.models.consensus import (
    DEFAULT_CONSENSUS_PARAMETERS,
    ConsensusParameters,
    ConsensusSnapshot,
)
from beachradar.domain.models.report import Report
from beachradar.domain.services.crowd_consensus import (
    compute_consensus,
    compute_consensus_by_location,
    sort_by_recency,
)
from beachradar.infrastructure.monitoring.metrics import MetricsCollector


class ReportFeedService(LoggingMixin):
    """Serves the recent-report feed and per-location consensus."""

    def __init__(
        self,
        store: ReportStorePort,
        config: FeedConfig = DEFAULT_FEED_CONFIG,
        params: ConsensusParameters = DEFAULT_CONSENSUS_PARAMETERS,
        store_timeout_seconds: float = DEFAULT_REPORT_INGESTION_CONFIG.store_timeout_seconds,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize the feed service.

        Args:
            store: Report persistence.
            config: Lookback window, row cap and cache settings.
            params: Consensus engine parameters.
            store_timeout_seconds: Deadline for each store read.
            metrics: Optional collector for store error counters.
        """
        self._store = store
        self._config = config
        self._params = params
        self._store_timeout_seconds = store_timeout_seconds
        self._metrics = metrics
        self._init_logger(component="reports")

    @property
    def config(self) -> FeedConfig:
        """Feed configuration (used by the API for cache headers)."""
        return self._config

    async def list_recent(self, now: datetime | None = None) -> list[Report]:
        """Reports inside the lookback window, newest first, capped at max_rows.

        Raises:
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(hours=self._config.lookback_hours)
        log = self._log_operation("list_recent", since=since.isoformat())

        reports = await call_store(
            "list_since",
            self._store.list_since(since, limit=self._config.max_rows),
            self._store_timeout_seconds,
            log,
            self._metrics,
        )
        log.debug("feed_read", reports_count=len(reports))
        # Adapters promise newest first; the feed contract does not rely on it.
        return sort_by_recency(reports)[: self._config.max_rows]

    async def consensus_for(
        self, location_id: str, now: datetime | None = None
    ) -> ConsensusSnapshot:
        """Consensus snapshot for one location.

        Only reports inside the TTL can contribute, so only those are read.

        Raises:
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(minutes=self._params.ttl_minutes)
        log = self._log_operation("consensus_for", location_id=location_id)

        reports = await call_store(
            "list_for_location",
            self._store.list_for_location(location_id, since),
            self._store_timeout_seconds,
            log,
            self._metrics,
        )
        return compute_consensus(location_id, reports, now, self._params)

    async def consensus_for_many(
        self,
        location_ids: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> dict[str, ConsensusSnapshot]:
        """Consensus snapshots for several locations from one feed read.

        Args:
            location_ids: Locations to summarize. None means every location
                reported within the lookback window.
            now: Evaluation time.

        Returns:
            Mapping of location id to snapshot.

        Raises:
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        now = now or datetime.now(timezone.utc)
        reports = await self.list_recent(now)
        return compute_consensus_by_location(
            reports, now, location_ids=location_ids, params=self._params
        )
