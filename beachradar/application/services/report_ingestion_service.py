"""Report ingestion gate.

Validates a submission, builds the Report and persists it through the store's
atomic conditional append, which enforces the per-reporter cooldown. The gate
fails closed: a store error or timeout surfaces as ReportStoreUnavailableError
and never as an accepted report.
"""

from __future__ import annotations

import ipaddress
import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from beachradar.application.ports.report_store import ReportStorePort
from beachradar.application.services.base import LoggingMixin
from beachradar.application.services.report_validation import (
    ReportSubmission,
    parse_report_submission,
)
from beachradar.application.services.store_guard import call_store
from beachradar.application.services.volume_limit_service import ClientContext
from beachradar.config.report_config import (
    DEFAULT_REPORT_INGESTION_CONFIG,
    ReportIngestionConfig,
)
from beachradar.domain.errors.rate_limit import ReportTooSoonError
from beachradar.domain.errors.store import ReportStoreUnavailableError
from beachradar.domain.errors.validation import ReportValidationError
from beachradar.domain.models.report import Report
from beachradar.infrastructure.monitoring.metrics import MetricsCollector

__all__ = [
    "ClientContext",
    "ReportIngestionService",
    "coarse_network_origin",
    "retry_after_seconds",
]


def coarse_network_origin(network_identity: str | None) -> str | None:
    """Reduce a client address to its network (IPv4 /24, IPv6 /48).

    Args:
        network_identity: Client IP address.

    Returns:
        Network in CIDR notation, or None when the address is missing or
        unparseable.
    """
    if not network_identity:
        return None
    try:
        address = ipaddress.ip_address(network_identity.strip())
    except ValueError:
        return None
    prefix = 24 if address.version == 4 else 48
    return str(ipaddress.ip_network(f"{address}/{prefix}", strict=False))


def retry_after_seconds(
    last_report_at: datetime, cooldown: timedelta, now: datetime
) -> int:
    """Whole seconds until the cooldown that started at last_report_at ends (>= 1)."""
    remaining = (last_report_at + cooldown - now).total_seconds()
    return max(1, math.ceil(remaining))


class ReportIngestionService(LoggingMixin):
    """Accepts or rejects report submissions.

    Example:
        >>> service = ReportIngestionService(store=ReportStoreStub())
        >>> report = await service.submit(
        ...     {"locationId": "marina-01", "crowdLevel": 3, "reporterHash": "r1"},
        ...     ClientContext(network_identity="203.0.113.7"),
        ... )
    """

    def __init__(
        self,
        store: ReportStorePort,
        config: ReportIngestionConfig = DEFAULT_REPORT_INGESTION_CONFIG,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """Initialize the ingestion gate.

        Args:
            store: Report persistence.
            config: Ingestion configuration.
            metrics: Optional collector for acceptance/rejection counters.
        """
        self._store = store
        self._config = config
        self._metrics = metrics
        self._init_logger(component="reports")

    def record_rejection(self, reason: str) -> None:
        """Count a rejected submission under its error code."""
        if self._metrics is not None:
            self._metrics.increment_reports_rejected(reason)

    def _truncate_user_agent(self, user_agent: str | None) -> str | None:
        if user_agent is None:
            return None
        trimmed = user_agent.strip()
        return trimmed[: self._config.max_user_agent_length] or None

    def validate(self, payload: Mapping[str, Any]) -> ReportSubmission:
        """Check a decoded body without touching the store or the limiter.

        Raises:
            ReportValidationError: On malformed input.
        """
        try:
            return parse_report_submission(payload, self._config)
        except ReportValidationError as exc:
            self._log_operation("validate_report").info(
                "report_rejected_invalid", error=exc.code
            )
            self.record_rejection(exc.code)
            raise

    async def submit(
        self,
        payload: Mapping[str, Any],
        client: ClientContext | None = None,
        now: datetime | None = None,
    ) -> Report:
        """Validate and persist one report submission.

        Equivalent to accept(validate(payload), client, now).

        Raises:
            ReportValidationError: On malformed input (no I/O performed).
            ReportTooSoonError: If the reporter is inside the cooldown.
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        return await self.accept(self.validate(payload), client, now)

    async def accept(
        self,
        submission: ReportSubmission,
        client: ClientContext | None = None,
        now: datetime | None = None,
    ) -> Report:
        """Persist an already validated submission under the cooldown.

        Args:
            submission: Output of validate().
            client: Submitting client context.
            now: Acceptance time (defaults to current UTC time).

        Returns:
            The persisted Report.

        Raises:
            ReportTooSoonError: If the reporter is inside the cooldown.
            ReportStoreUnavailableError: If the store failed or timed out.
        """
        client = client or ClientContext()
        now = now or datetime.now(timezone.utc)
        log = self._log_operation(
            "submit_report",
            location_id=submission.location_id,
            reporter=self._reporter_tag(submission.reporter_hash),
        )

        report = Report.create(
            location_id=submission.location_id,
            crowd_level=submission.crowd_level,
            reporter_hash=submission.reporter_hash,
            water_condition=submission.water_condition,
            beach_condition=submission.beach_condition,
            attribution=submission.attribution,
            network_origin=coarse_network_origin(client.network_identity),
            user_agent=self._truncate_user_agent(client.user_agent),
            created_at=now,
        )

        cooldown = timedelta(seconds=self._config.cooldown_seconds)
        try:
            result = await call_store(
                "append_unless_recent",
                self._store.append_unless_recent(report, since=now - cooldown),
                self._config.store_timeout_seconds,
                log,
                self._metrics,
            )
        except ReportStoreUnavailableError:
            self.record_rejection("store_unavailable")
            raise

        if not result.accepted:
            conflict_at = result.conflicting_created_at or now
            retry_after = retry_after_seconds(conflict_at, cooldown, now)
            log.info(
                "report_rejected_too_soon",
                last_report_at=conflict_at.isoformat(),
                retry_after_seconds=retry_after,
            )
            self.record_rejection(ReportTooSoonError.code)
            raise ReportTooSoonError(
                location_id=submission.location_id,
                last_report_at=conflict_at,
                cooldown_minutes=self._config.rate_limit_minutes,
                retry_after_seconds=retry_after,
            )

        persisted = result.report or report
        log.info(
            "report_accepted",
            report_id=str(persisted.id),
            crowd_level=int(persisted.crowd_level),
        )
        if self._metrics is not None:
            self._metrics.increment_reports_accepted()
        return persisted
