"""In-memory implementations of the application ports."""

from beachradar.infrastructure.stubs.rate_limiter_stub import InMemoryRateLimiter
from beachradar.infrastructure.stubs.report_store_stub import ReportStoreStub

__all__: list[str] = ["InMemoryRateLimiter", "ReportStoreStub"]
