"""PostgreSQL fixed-window rate limiter.

Each (client, window) key is one row. The check and the increment are a
single upsert, so concurrent requests from every API instance share one
atomic counter:

    INSERT INTO report_rate_limit_windows (bucket_key, window_end, hits)
    VALUES (:key, :window_end, 1)
    ON CONFLICT (bucket_key)
    DO UPDATE SET hits = report_rate_limit_windows.hits + 1
    RETURNING hits;
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from beachradar.application.ports.rate_limiter import RateLimitResult, window_end_for
from beachradar.domain.errors.store import RateLimiterUnavailableError

RATE_LIMIT_TABLE = "report_rate_limit_windows"

RATE_LIMIT_TABLE_DDL: tuple[str, ...] = (
    f"""
    CREATE TABLE IF NOT EXISTS {RATE_LIMIT_TABLE} (
        bucket_key TEXT PRIMARY KEY,
        window_end TIMESTAMPTZ NOT NULL,
        hits INTEGER NOT NULL
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {RATE_LIMIT_TABLE}_window_end_idx
        ON {RATE_LIMIT_TABLE} (window_end)
    """,
)


class PostgresRateLimiter:
    """PostgreSQL implementation of RateLimiterPort.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def ensure_schema(self) -> None:
        """Create the window table if missing."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for statement in RATE_LIMIT_TABLE_DDL:
                        await session.execute(text(statement))
        except SQLAlchemyError as exc:
            raise RateLimiterUnavailableError(str(exc)) from exc

    async def check_and_consume(
        self,
        key: str,
        limit: int,
        window_seconds: int,
        now: datetime | None = None,
    ) -> RateLimitResult:
        """Increment the key's window counter and compare it to limit."""
        now = now or datetime.now(timezone.utc)
        reset_at = window_end_for(now, window_seconds)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        text(f"""
                            INSERT INTO {RATE_LIMIT_TABLE} (bucket_key, window_end, hits)
                            VALUES (:key, :window_end, 1)
                            ON CONFLICT (bucket_key)
                            DO UPDATE SET hits = {RATE_LIMIT_TABLE}.hits + 1
                            RETURNING hits
                        """),
                        {"key": key, "window_end": reset_at},
                    )
                    hits = int(result.scalar_one())
        except SQLAlchemyError as exc:
            raise RateLimiterUnavailableError(str(exc)) from exc

        if hits > limit:
            return RateLimitResult(
                allowed=False,
                current_count=hits,
                limit=limit,
                reset_at=reset_at,
                retry_after_seconds=max(1, math.ceil((reset_at - now).total_seconds())),
            )
        return RateLimitResult(
            allowed=True,
            current_count=hits,
            limit=limit,
            reset_at=reset_at,
        )

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete windows that have ended."""
        now = now or datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        text(f"DELETE FROM {RATE_LIMIT_TABLE} WHERE window_end <= :now"),
                        {"now": now},
                    )
                    return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise RateLimiterUnavailableError(str(exc)) from exc
