"""PostgreSQL report store.

The cooldown check and the insert run in one transaction that first takes a
transaction-scoped advisory lock on the (location_id, reporter_hash) pair.
Concurrent submissions for the same pair serialize on that lock, so at most
one of them can insert inside a cooldown window.

SQL Pattern (append_unless_recent):
    BEGIN;
    SELECT pg_advisory_xact_lock(hashtextextended('<location>:<reporter>', 0));
    SELECT created_at FROM beach_reports
     WHERE location_id = $1 AND reporter_hash = $2 AND created_at >= $3
     ORDER BY created_at DESC LIMIT 1;
    -- insert only when no row came back
    INSERT INTO beach_reports (...) VALUES (...);
    COMMIT;
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from beachradar.application.ports.report_store import AppendResult
from beachradar.domain.errors.store import ReportStoreError
from beachradar.domain.models.report import Report

logger = get_logger()

REPORTS_TABLE = "beach_reports"

REPORTS_TABLE_DDL: tuple[str, ...] = (
    f"""
    CREATE TABLE IF NOT EXISTS {REPORTS_TABLE} (
        id UUID PRIMARY KEY,
        location_id VARCHAR(96) NOT NULL,
        crowd_level SMALLINT NOT NULL CHECK (crowd_level BETWEEN 1 AND 4),
        water_condition SMALLINT CHECK (water_condition BETWEEN 1 AND 4),
        beach_condition SMALLINT CHECK (beach_condition BETWEEN 1 AND 3),
        reporter_hash VARCHAR(128) NOT NULL,
        attribution JSONB NOT NULL DEFAULT '{{}}'::jsonb,
        network_origin TEXT,
        user_agent TEXT,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {REPORTS_TABLE}_created_at_idx
        ON {REPORTS_TABLE} (created_at DESC)
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {REPORTS_TABLE}_location_created_at_idx
        ON {REPORTS_TABLE} (location_id, created_at DESC)
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {REPORTS_TABLE}_cooldown_idx
        ON {REPORTS_TABLE} (location_id, reporter_hash, created_at DESC)
    """,
)

_REPORT_COLUMNS = (
    "id, location_id, crowd_level, water_condition, beach_condition, "
    "reporter_hash, attribution, network_origin, user_agent, created_at"
)


def _decode_attribution(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    return dict(value) if isinstance(value, Mapping) else {}


def _row_to_report(row: Any) -> Report:
    data = row._mapping
    return Report(
        id=data["id"],
        location_id=data["location_id"],
        crowd_level=data["crowd_level"],
        reporter_hash=data["reporter_hash"],
        created_at=data["created_at"],
        water_condition=data["water_condition"],
        beach_condition=data["beach_condition"],
        attribution=_decode_attribution(data["attribution"]),
        network_origin=data["network_origin"],
        user_agent=data["user_agent"],
    )


class PostgresReportStore:
    """PostgreSQL implementation of ReportStorePort.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    async def ensure_schema(self) -> None:
        """Create the reports table and indexes if missing."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for statement in REPORTS_TABLE_DDL:
                        await session.execute(text(statement))
        except SQLAlchemyError as exc:
            raise ReportStoreError("ensure_schema", str(exc)) from exc

    async def append_unless_recent(self, report: Report, since: datetime) -> AppendResult:
        """Insert report unless its reporter reported the location since `since`."""
        log = logger.bind(location_id=report.location_id)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        text("SELECT pg_advisory_xact_lock(hashtextextended(:lock_key, 0))"),
                        {"lock_key": f"{report.location_id}:{report.reporter_hash}"},
                    )
                    conflict = await session.execute(
                        text(f"""
                            SELECT created_at
                            FROM {REPORTS_TABLE}
                            WHERE location_id = :location_id
                              AND reporter_hash = :reporter_hash
                              AND created_at >= :since
                            ORDER BY created_at DESC
                            LIMIT 1
                        """),
                        {
                            "location_id": report.location_id,
                            "reporter_hash": report.reporter_hash,
                            "since": since,
                        },
                    )
                    conflict_row = conflict.fetchone()
                    if conflict_row is not None:
                        log.debug(
                            "report_cooldown_conflict",
                            last_report_at=conflict_row[0].isoformat(),
                        )
                        return AppendResult(
                            report=None, conflicting_created_at=conflict_row[0]
                        )

                    await session.execute(
                        text(f"""
                            INSERT INTO {REPORTS_TABLE} ({_REPORT_COLUMNS})
                            VALUES (
                                :id, :location_id, :crowd_level, :water_condition,
                                :beach_condition, :reporter_hash,
                                CAST(:attribution AS JSONB), :network_origin,
                                :user_agent, :created_at
                            )
                        """),
                        {
                            "id": report.id,
                            "location_id": report.location_id,
                            "crowd_level": int(report.crowd_level),
                            "water_condition": (
                                int(report.water_condition)
                                if report.water_condition is not None
                                else None
                            ),
                            "beach_condition": (
                                int(report.beach_condition)
                                if report.beach_condition is not None
                                else None
                            ),
                            "reporter_hash": report.reporter_hash,
                            "attribution": json.dumps(dict(report.attribution)),
                            "network_origin": report.network_origin,
                            "user_agent": report.user_agent,
                            "created_at": report.created_at,
                        },
                    )
        except SQLAlchemyError as exc:
            log.error("report_insert_failed", error=str(exc))
            raise ReportStoreError("append_unless_recent", str(exc)) from exc
        return AppendResult(report=report)

    async def list_since(self, since: datetime, limit: int) -> list[Report]:
        """Reports created at or after since, newest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(f"""
                        SELECT {_REPORT_COLUMNS}
                        FROM {REPORTS_TABLE}
                        WHERE created_at >= :since
                        ORDER BY created_at DESC
                        LIMIT :limit
                    """),
                    {"since": since, "limit": limit},
                )
                return [_row_to_report(row) for row in result.fetchall()]
        except SQLAlchemyError as exc:
            raise ReportStoreError("list_since", str(exc)) from exc

    async def list_for_location(self, location_id: str, since: datetime) -> list[Report]:
        """One location's reports created at or after since, newest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(f"""
                        SELECT {_REPORT_COLUMNS}
                        FROM {REPORTS_TABLE}
                        WHERE location_id = :location_id
                          AND created_at >= :since
                        ORDER BY created_at DESC
                    """),
                    {"location_id": location_id, "since": since},
                )
                return [_row_to_report(row) for row in result.fetchall()]
        except SQLAlchemyError as exc:
            raise ReportStoreError("list_for_location", str(exc)) from exc

    async def count_older_than(self, cutoff: datetime) -> int:
        """Count reports created before cutoff."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    text(f"SELECT COUNT(*) FROM {REPORTS_TABLE} WHERE created_at < :cutoff"),
                    {"cutoff": cutoff},
                )
                return result.scalar() or 0
        except SQLAlchemyError as exc:
            raise ReportStoreError("count_older_than", str(exc)) from exc

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete reports created before cutoff."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        text(f"DELETE FROM {REPORTS_TABLE} WHERE created_at < :cutoff"),
                        {"cutoff": cutoff},
                    )
                    return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise ReportStoreError("delete_older_than", str(exc)) from exc
