"""Abuse-control rejections for report submission.

These are expected outcomes, not failures. Each carries a retry-after hint so
clients can wait and try again.
"""

from __future__ import annotations

from datetime import datetime

from beachradar.domain.exceptions import BeachRadarError


class AbuseControlError(BeachRadarError):
    """Base class for rejections that carry a retry-after hint.

    Attributes:
        code: Machine-readable error code.
        retry_after_seconds: Seconds the client should wait (always >= 1).
    """

    code: str = "rate_limited"

    def __init__(self, message: str, retry_after_seconds: int) -> None:
        self.retry_after_seconds = max(1, retry_after_seconds)
        super().__init__(message)


class ReportTooSoonError(AbuseControlError):
    """Raised when a reporter already reported this location within the cooldown.

    Attributes:
        location_id: Location the reporter tried to report again.
        last_report_at: When the conflicting report was created.
        cooldown_minutes: Configured cooldown length.
    """

    code = "too_soon"

    def __init__(
        self,
        location_id: str,
        last_report_at: datetime,
        cooldown_minutes: int,
        retry_after_seconds: int,
    ) -> None:
        self.location_id = location_id
        self.last_report_at = last_report_at
        self.cooldown_minutes = cooldown_minutes
        super().__init__(
            f"A report for {location_id} was already accepted at "
            f"{last_report_at.isoformat()}; one report per "
            f"{cooldown_minutes} minutes",
            retry_after_seconds,
        )


class VolumeLimitExceededError(AbuseControlError):
    """Raised when an anonymous client exceeds the per-window request volume.

    Attributes:
        limit: Maximum requests per window.
        reset_at: When the current window ends.
    """

    code = "rate_limited"

    def __init__(self, limit: int, reset_at: datetime, retry_after_seconds: int) -> None:
        self.limit = limit
        self.reset_at = reset_at
        super().__init__(
            f"Request volume limit of {limit} per window exceeded. "
            f"Resets at {reset_at.isoformat()}.",
            retry_after_seconds,
        )
