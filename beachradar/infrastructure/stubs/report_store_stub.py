"""In-memory report store for tests and local development.

Implements ReportStorePort with the same atomic conditional-append semantics
as the Postgres adapter: the cooldown check and the insert run under one
lock, so concurrent submissions for a (location, reporter) pair never both
succeed.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from beachradar.application.ports.report_store import AppendResult
from beachradar.domain.models.report import Report
from beachradar.domain.services.crowd_consensus import sort_by_recency


class ReportStoreStub:
    """In-memory implementation of ReportStorePort.

    Attributes:
        _reports: All stored reports in insertion order.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._reports: list[Report] = []
        self._lock = asyncio.Lock()
        self._failure: Exception | None = None
        self._delay_seconds = 0.0

    async def _before_call(self) -> None:
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)
        if self._failure is not None:
            raise self._failure

    async def append_unless_recent(self, report: Report, since: datetime) -> AppendResult:
        """Append report unless its reporter reported the location since `since`."""
        await self._before_call()
        async with self._lock:
            conflicts = [
                existing.created_at
                for existing in self._reports
                if existing.location_id == report.location_id
                and existing.reporter_hash == report.reporter_hash
                and existing.created_at >= since
            ]
            if conflicts:
                return AppendResult(report=None, conflicting_created_at=max(conflicts))
            self._reports.append(report)
        return AppendResult(report=report)

    async def list_since(self, since: datetime, limit: int) -> list[Report]:
        """Reports created at or after since, newest first."""
        await self._before_call()
        recent = [r for r in self._reports if r.created_at >= since]
        return sort_by_recency(recent)[:limit]

    async def list_for_location(self, location_id: str, since: datetime) -> list[Report]:
        """One location's reports created at or after since, newest first."""
        await self._before_call()
        return sort_by_recency(
            r for r in self._reports if r.location_id == location_id and r.created_at >= since
        )

    async def count_older_than(self, cutoff: datetime) -> int:
        """Count reports created before cutoff."""
        await self._before_call()
        return sum(1 for r in self._reports if r.created_at < cutoff)

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete reports created before cutoff."""
        await self._before_call()
        async with self._lock:
            kept = [r for r in self._reports if r.created_at >= cutoff]
            deleted = len(self._reports) - len(kept)
            self._reports = kept
        return deleted

    # Test helper methods

    def add_report(self, report: Report) -> None:
        """Insert a report directly, bypassing the cooldown (test helper)."""
        self._reports.append(report)

    def fail_with(self, error: Exception | None) -> None:
        """Make every call raise error (None restores normal behaviour)."""
        self._failure = error

    def set_delay(self, seconds: float) -> None:
        """Delay every call by seconds (simulates a slow store)."""
        self._delay_seconds = seconds

    def get_all(self) -> list[Report]:
        """All stored reports in insertion order."""
        return list(self._reports)

    def clear(self) -> None:
        """Remove all reports and failure injection."""
        self._reports.clear()
        self._failure = None
        self._delay_seconds = 0.0
