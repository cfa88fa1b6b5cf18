"""Downstream availability errors.

Raised when the report store or the shared rate-limit counter cannot be
reached in time. A client may retry; the error never implies that a write
took place.
"""

from __future__ import annotations

from beachradar.domain.exceptions import BeachRadarError


class ReportStoreError(BeachRadarError):
    """Raised by report store adapters when an operation fails.

    Attributes:
        operation: Store operation that failed.
    """

    def __init__(self, operation: str, message: str = "") -> None:
        self.operation = operation
        super().__init__(message or f"Report store operation failed: {operation}")


class ReportStoreUnavailableError(ReportStoreError):
    """Raised by the gate when the store failed or exceeded its deadline.

    Attributes:
        operation: Store operation that failed.
        reason: "timeout" or "error".
    """

    def __init__(self, operation: str, reason: str = "error") -> None:
        self.reason = reason
        super().__init__(
            operation,
            f"Report store unavailable during {operation} ({reason})",
        )


class RateLimiterUnavailableError(BeachRadarError):
    """Raised by shared rate-limit counter adapters when the counter fails."""

    pass
