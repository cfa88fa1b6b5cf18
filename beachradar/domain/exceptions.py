"""Base exception classes for the Beach Radar domain layer."""


class BeachRadarError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so the API
    layer can tell domain failures apart from programming errors.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
