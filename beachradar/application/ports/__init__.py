"""Application ports (interfaces) for Beach Radar."""

from beachradar.application.ports.rate_limiter import (
    RateLimiterPort,
    RateLimitResult,
)
from beachradar.application.ports.report_store import AppendResult, ReportStorePort

__all__: list[str] = [
    "AppendResult",
    "RateLimitResult",
    "RateLimiterPort",
    "ReportStorePort",
]
