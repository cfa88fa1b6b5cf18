"""Unit tests for the PostgreSQL adapters using a mocked session factory."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from beachradar.domain.errors.store import (
    RateLimiterUnavailableError,
    ReportStoreError,
)
from beachradar.infrastructure.adapters.postgres_rate_limiter import (
    PostgresRateLimiter,
)
from beachradar.infrastructure.adapters.postgres_report_store import (
    PostgresReportStore,
)
from tests.helpers.reports import make_report

WINDOW_START = datetime(2026, 7, 18, 12, 0, tzinfo=timezone.utc)


def _session(execute: AsyncMock) -> MagicMock:
    session = MagicMock()
    session.execute = execute
    session.begin.return_value.__aenter__ = AsyncMock(return_value=None)
    session.begin.return_value.__aexit__ = AsyncMock(return_value=False)
    return session


def _factory(session: MagicMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


def _db_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestPostgresRateLimiter:
    """Tests for PostgresRateLimiter."""

    @pytest.mark.asyncio
    async def test_allowed_until_hits_exceed_limit(self) -> None:
        result = MagicMock()
        result.scalar_one.return_value = 3
        limiter = PostgresRateLimiter(_factory(_session(AsyncMock(return_value=result))))

        outcome = await limiter.check_and_consume(
            "k", limit=3, window_seconds=60, now=WINDOW_START + timedelta(seconds=15)
        )

        assert outcome.allowed
        assert outcome.current_count == 3

    @pytest.mark.asyncio
    async def test_blocked_with_retry_after(self) -> None:
        result = MagicMock()
        result.scalar_one.return_value = 4
        limiter = PostgresRateLimiter(_factory(_session(AsyncMock(return_value=result))))

        outcome = await limiter.check_and_consume(
            "k", limit=3, window_seconds=60, now=WINDOW_START + timedelta(seconds=15)
        )

        assert not outcome.allowed
        assert outcome.retry_after_seconds == 45

    @pytest.mark.asyncio
    async def test_database_error_is_limiter_unavailable(self) -> None:
        limiter = PostgresRateLimiter(
            _factory(_session(AsyncMock(side_effect=_db_error())))
        )

        with pytest.raises(RateLimiterUnavailableError):
            await limiter.check_and_consume("k", limit=3, window_seconds=60)


class TestPostgresReportStore:
    """Tests for PostgresReportStore."""

    @pytest.mark.asyncio
    async def test_append_inserts_when_no_conflict(self, now) -> None:
        no_conflict = MagicMock()
        no_conflict.fetchone.return_value = None
        execute = AsyncMock(side_effect=[MagicMock(), no_conflict, MagicMock()])
        store = PostgresReportStore(_factory(_session(execute)))
        report = make_report(3)

        result = await store.append_unless_recent(report, since=now - timedelta(minutes=10))

        assert result.accepted
        assert result.report == report
        assert execute.await_count == 3
        lock_params = execute.await_args_list[0].args[1]
        assert lock_params == {"lock_key": f"marina-01:{report.reporter_hash}"}

    @pytest.mark.asyncio
    async def test_append_refused_on_conflict(self, now) -> None:
        conflict = MagicMock()
        conflict.fetchone.return_value = (now - timedelta(minutes=2),)
        execute = AsyncMock(side_effect=[MagicMock(), conflict])
        store = PostgresReportStore(_factory(_session(execute)))

        result = await store.append_unless_recent(
            make_report(3), since=now - timedelta(minutes=10)
        )

        assert not result.accepted
        assert result.conflicting_created_at == now - timedelta(minutes=2)
        assert execute.await_count == 2

    @pytest.mark.asyncio
    async def test_database_error_is_store_error(self, now) -> None:
        store = PostgresReportStore(
            _factory(_session(AsyncMock(side_effect=_db_error())))
        )

        with pytest.raises(ReportStoreError) as exc_info:
            await store.list_since(now - timedelta(hours=6), limit=10)

        assert exc_info.value.operation == "list_since"
