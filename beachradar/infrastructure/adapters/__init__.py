"""PostgreSQL adapters for the application ports."""

from beachradar.infrastructure.adapters.postgres_rate_limiter import (
    PostgresRateLimiter,
)
from beachradar.infrastructure.adapters.postgres_report_store import (
    PostgresReportStore,
)

__all__: list[str] = ["PostgresRateLimiter", "PostgresReportStore"]
