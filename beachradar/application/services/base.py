"""Shared structured logging for report services.

Services log through one logger bound with their class name and a component
label (`reports`, `abuse-control`, `retention`). Each public operation derives
a child logger carrying the operation name and the request correlation id.
"""

import structlog

from beachradar.infrastructure.observability.correlation import get_correlation_id

# Reporter hashes only ever reach the logs as this many leading characters
REPORTER_TAG_LENGTH = 8


class LoggingMixin:
    """Structured logging for application services.

    Call _init_logger() from __init__, then start every operation with
    _log_operation():

        log = self._log_operation("submit_report", location_id=location_id)
        log.info("report_accepted")
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "reports") -> None:
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Logger for one operation, bound with the current correlation id.

        Args:
            operation: Operation name.
            **context: Extra fields bound for the operation.

        Returns:
            Operation-scoped BoundLogger.
        """
        correlation_id = get_correlation_id()
        if correlation_id:
            context.setdefault("correlation_id", correlation_id)
        return self._log.bind(operation=operation, **context)

    @staticmethod
    def _reporter_tag(reporter_hash: str) -> str:
        """Truncated reporter hash safe for log output."""
        return reporter_hash[:REPORTER_TAG_LENGTH]
