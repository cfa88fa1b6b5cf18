"""API dependencies for dependency injection."""

from beachradar.api.dependencies.reports import (
    get_rate_limiter,
    get_report_feed_service,
    get_report_ingestion_service,
    get_report_retention_service,
    get_report_store,
    get_volume_limit_service,
    reset_report_dependencies,
)

__all__: list[str] = [
    "get_rate_limiter",
    "get_report_feed_service",
    "get_report_ingestion_service",
    "get_report_retention_service",
    "get_report_store",
    "get_volume_limit_service",
    "reset_report_dependencies",
]
