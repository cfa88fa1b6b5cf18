"""Domain errors for Beach Radar.

Three families, each handled differently by clients:
- validation errors: fix your input
- abuse-control rejections: wait and retry
- availability errors: try again later
"""

from beachradar.domain.errors.rate_limit import (
    AbuseControlError,
    ReportTooSoonError,
    VolumeLimitExceededError,
)
from beachradar.domain.errors.store import (
    RateLimiterUnavailableError,
    ReportStoreError,
    ReportStoreUnavailableError,
)
from beachradar.domain.errors.validation import ReportValidationError

__all__: list[str] = [
    "AbuseControlError",
    "RateLimiterUnavailableError",
    "ReportStoreError",
    "ReportStoreUnavailableError",
    "ReportTooSoonError",
    "ReportValidationError",
    "VolumeLimitExceededError",
]
