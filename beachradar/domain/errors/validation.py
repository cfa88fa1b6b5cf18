"""Report validation errors.

Validation errors are caller mistakes. They are raised before any I/O takes
place and are never retried automatically.
"""

from __future__ import annotations

from beachradar.domain.exceptions import BeachRadarError

INVALID_BODY = "invalid_body"
PAYLOAD_TOO_LARGE = "payload_too_large"
INVALID_LOCATION_ID = "invalid_location_id"
INVALID_CROWD_LEVEL = "invalid_crowd_level"
INVALID_REPORTER_HASH = "invalid_reporter_hash"
INVALID_WATER_CONDITION = "invalid_water_condition"
INVALID_BEACH_CONDITION = "invalid_beach_condition"

VALIDATION_ERROR_CODES: frozenset[str] = frozenset(
    {
        INVALID_BODY,
        PAYLOAD_TOO_LARGE,
        INVALID_LOCATION_ID,
        INVALID_CROWD_LEVEL,
        INVALID_REPORTER_HASH,
        INVALID_WATER_CONDITION,
        INVALID_BEACH_CONDITION,
    }
)


class ReportValidationError(BeachRadarError):
    """Raised when a report submission fails validation.

    Attributes:
        code: Machine-readable error code returned to the client.
        detail: Human-readable explanation.
    """

    def __init__(self, code: str, detail: str | None = None) -> None:
        """Initialize validation error.

        Args:
            code: One of VALIDATION_ERROR_CODES.
            detail: Optional human-readable explanation.

        Raises:
            ValueError: If code is not a known validation code.
        """
        if code not in VALIDATION_ERROR_CODES:
            raise ValueError(f"Unknown validation error code: {code}")
        self.code = code
        self.detail = detail or code.replace("_", " ")
        super().__init__(f"{code}: {self.detail}")
