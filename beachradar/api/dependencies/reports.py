"""Report API dependencies.

Module-level singletons wired on first use. When DATABASE_URL is set the
Postgres store and limiter are used; otherwise the in-memory implementations
(data does not persist and limits are per process).

Tests swap pieces in with the set_* helpers and clear everything with
reset_report_dependencies().
"""

from __future__ import annotations

from structlog import get_logger

from beachradar.application.ports.rate_limiter import RateLimiterPort
from beachradar.application.ports.report_store import ReportStorePort
from beachradar.application.services.report_feed_service import ReportFeedService
from beachradar.application.services.report_ingestion_service import (
    ReportIngestionService,
)
from beachradar.application.services.report_retention_service import (
    ReportRetentionService,
)
from beachradar.application.services.volume_limit_service import VolumeLimitService
from beachradar.bootstrap.database import get_session_factory, is_database_configured
from beachradar.config.consensus_config import load_consensus_parameters
from beachradar.config.report_config import (
    FeedConfig,
    ReportIngestionConfig,
    RetentionConfig,
    VolumeLimitConfig,
)
from beachradar.domain.models.consensus import ConsensusParameters
from beachradar.infrastructure.adapters.postgres_rate_limiter import (
    PostgresRateLimiter,
)
from beachradar.infrastructure.adapters.postgres_report_store import (
    PostgresReportStore,
)
from beachradar.infrastructure.monitoring.metrics import get_metrics_collector
from beachradar.infrastructure.stubs.rate_limiter_stub import InMemoryRateLimiter
from beachradar.infrastructure.stubs.report_store_stub import ReportStoreStub

logger = get_logger()

_report_store: ReportStorePort | None = None
_rate_limiter: RateLimiterPort | None = None
_ingestion_config: ReportIngestionConfig | None = None
_volume_limit_config: VolumeLimitConfig | None = None
_feed_config: FeedConfig | None = None
_retention_config: RetentionConfig | None = None
_consensus_parameters: ConsensusParameters | None = None


def get_report_store() -> ReportStorePort:
    """Get the report store (Postgres when DATABASE_URL is set)."""
    global _report_store
    if _report_store is None:
        if is_database_configured():
            _report_store = PostgresReportStore(session_factory=get_session_factory())
            logger.info("report_store_initialized", store_type="PostgreSQL")
        else:
            logger.warning(
                "report_store_initialized",
                store_type="InMemoryStub",
                message="DATABASE_URL not set - reports will not persist",
            )
            _report_store = ReportStoreStub()
    return _report_store


def get_rate_limiter() -> RateLimiterPort:
    """Get the volume limiter backend (Postgres when DATABASE_URL is set)."""
    global _rate_limiter
    if _rate_limiter is None:
        if is_database_configured():
            _rate_limiter = PostgresRateLimiter(session_factory=get_session_factory())
        else:
            _rate_limiter = InMemoryRateLimiter()
    return _rate_limiter


def get_report_ingestion_config() -> ReportIngestionConfig:
    """Get ingestion configuration loaded from environment."""
    global _ingestion_config
    if _ingestion_config is None:
        _ingestion_config = ReportIngestionConfig.from_environment()
    return _ingestion_config


def get_volume_limit_config() -> VolumeLimitConfig:
    """Get volume limiter configuration loaded from environment."""
    global _volume_limit_config
    if _volume_limit_config is None:
        _volume_limit_config = VolumeLimitConfig.from_environment()
    return _volume_limit_config


def get_feed_config() -> FeedConfig:
    """Get feed configuration loaded from environment."""
    global _feed_config
    if _feed_config is None:
        _feed_config = FeedConfig.from_environment()
    return _feed_config


def get_retention_config() -> RetentionConfig:
    """Get retention configuration loaded from environment."""
    global _retention_config
    if _retention_config is None:
        _retention_config = RetentionConfig.from_environment()
    return _retention_config


def get_consensus_parameters() -> ConsensusParameters:
    """Get consensus engine parameters loaded from environment."""
    global _consensus_parameters
    if _consensus_parameters is None:
        _consensus_parameters = load_consensus_parameters()
    return _consensus_parameters


def get_report_ingestion_service() -> ReportIngestionService:
    """Build the ingestion gate over the current store and config."""
    return ReportIngestionService(
        store=get_report_store(),
        config=get_report_ingestion_config(),
        metrics=get_metrics_collector(),
    )


def get_volume_limit_service() -> VolumeLimitService:
    """Build the volume limiter over the current backend and config."""
    return VolumeLimitService(
        limiter=get_rate_limiter(),
        config=get_volume_limit_config(),
        metrics=get_metrics_collector(),
    )


def get_report_feed_service() -> ReportFeedService:
    """Build the feed service over the current store and config."""
    return ReportFeedService(
        store=get_report_store(),
        config=get_feed_config(),
        params=get_consensus_parameters(),
        store_timeout_seconds=get_report_ingestion_config().store_timeout_seconds,
        metrics=get_metrics_collector(),
    )


def get_report_retention_service() -> ReportRetentionService:
    """Build the retention job over the current store and limiter."""
    return ReportRetentionService(
        store=get_report_store(),
        config=get_retention_config(),
        limiter=get_rate_limiter(),
    )


def set_report_store(store: ReportStorePort) -> None:
    """Set custom report store for testing."""
    global _report_store
    _report_store = store


def set_rate_limiter(limiter: RateLimiterPort) -> None:
    """Set custom rate limiter for testing."""
    global _rate_limiter
    _rate_limiter = limiter


def set_report_ingestion_config(config: ReportIngestionConfig) -> None:
    """Set custom ingestion config for testing."""
    global _ingestion_config
    _ingestion_config = config


def set_volume_limit_config(config: VolumeLimitConfig) -> None:
    """Set custom volume limiter config for testing."""
    global _volume_limit_config
    _volume_limit_config = config


def set_feed_config(config: FeedConfig) -> None:
    """Set custom feed config for testing."""
    global _feed_config
    _feed_config = config


def set_retention_config(config: RetentionConfig) -> None:
    """Set custom retention config for testing."""
    global _retention_config
    _retention_config = config


def set_consensus_parameters(params: ConsensusParameters) -> None:
    """Set custom consensus parameters for testing."""
    global _consensus_parameters
    _consensus_parameters = params


def reset_report_dependencies() -> None:
    """Reset report dependency singletons."""
    global _report_store
    global _rate_limiter
    global _ingestion_config
    global _volume_limit_config
    global _feed_config
    global _retention_config
    global _consensus_parameters

    _report_store = None
    _rate_limiter = None
    _ingestion_config = None
    _volume_limit_config = None
    _feed_config = None
    _retention_config = None
    _consensus_parameters = None
