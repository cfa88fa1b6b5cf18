"""Report Store port.

Durable, append-only storage for reports, queryable by location and time
range. The store is the authority for the per-reporter cooldown: the
check-and-append is one atomic conditional write, never a read followed by a
separate write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from beachradar.domain.models.report import Report


@dataclass(frozen=True)
class AppendResult:
    """Outcome of a conditional append.

    Attributes:
        report: The persisted report, or None when the append was refused.
        conflicting_created_at: created_at of the newest report for the same
            (location_id, reporter_hash) inside the cooldown, when refused.
    """

    report: Report | None
    conflicting_created_at: datetime | None = None

    @property
    def accepted(self) -> bool:
        """Whether the report was written."""
        return self.report is not None


@runtime_checkable
class ReportStorePort(Protocol):
    """Protocol for report persistence.

    Implementations raise ReportStoreError on failure. They must never report
    a write that did not happen.

    Usage:
        result = await store.append_unless_recent(report, since=cooldown_start)
        if not result.accepted:
            # reporter already reported this location after cooldown_start
            ...
    """

    async def append_unless_recent(self, report: Report, since: datetime) -> AppendResult:
        """Append report unless the same reporter reported the same location since `since`.

        Must be atomic per (location_id, reporter_hash): two concurrent calls
        for one key never both succeed.

        Args:
            report: Fully built report to persist.
            since: Start of the cooldown window (inclusive).

        Returns:
            AppendResult describing whether the report was written.
        """
        ...

    async def list_since(self, since: datetime, limit: int) -> list[Report]:
        """List reports created at or after `since`, newest first.

        Args:
            since: Lower bound on created_at (inclusive).
            limit: Maximum number of rows.

        Returns:
            Reports ordered by descending created_at.
        """
        ...

    async def list_for_location(self, location_id: str, since: datetime) -> list[Report]:
        """List one location's reports created at or after `since`, newest first."""
        ...

    async def count_older_than(self, cutoff: datetime) -> int:
        """Count reports created strictly before `cutoff`."""
        ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete reports created strictly before `cutoff`.

        Returns:
            Number of deleted reports.
        """
        ...
