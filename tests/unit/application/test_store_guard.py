"""Unit tests for the store call deadline wrapper."""

import asyncio

import pytest
import structlog

from beachradar.application.services.store_guard import call_store
from beachradar.domain.errors.store import (
    ReportStoreError,
    ReportStoreUnavailableError,
)
from beachradar.infrastructure.monitoring.metrics import MetricsCollector


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def log():
    return structlog.get_logger().bind(test="store_guard")


def _errors(metrics: MetricsCollector, operation: str, reason: str) -> float:
    value = metrics.get_registry().get_sample_value(
        "report_store_errors_total",
        {**metrics.base_labels, "operation": operation, "reason": reason},
    )
    return value or 0.0


def _calls(metrics: MetricsCollector, operation: str) -> float:
    value = metrics.get_registry().get_sample_value(
        "report_store_call_seconds_count",
        {**metrics.base_labels, "operation": operation},
    )
    return value or 0.0


async def _returns(value):
    return value


async def _raises(error: Exception):
    raise error


async def _hangs():
    await asyncio.sleep(10)


class TestCallStore:
    """Tests for call_store."""

    @pytest.mark.asyncio
    async def test_passes_result_through(self, log, metrics) -> None:
        result = await call_store("list_since", _returns([1, 2]), 1.0, log, metrics)

        assert result == [1, 2]
        assert _calls(metrics, "list_since") == 1
        assert _errors(metrics, "list_since", "error") == 0

    @pytest.mark.asyncio
    async def test_timeout(self, log, metrics) -> None:
        with pytest.raises(ReportStoreUnavailableError) as exc_info:
            await call_store("list_since", _hangs(), 0.01, log, metrics)

        assert exc_info.value.reason == "timeout"
        assert _errors(metrics, "list_since", "timeout") == 1
        assert _calls(metrics, "list_since") == 1

    @pytest.mark.asyncio
    async def test_store_error(self, log, metrics) -> None:
        with pytest.raises(ReportStoreUnavailableError) as exc_info:
            await call_store(
                "delete_older_than",
                _raises(ReportStoreError("delete_older_than", "boom")),
                1.0,
                log,
                metrics,
            )

        assert exc_info.value.reason == "error"
        assert isinstance(exc_info.value.__cause__, ReportStoreError)
        assert _errors(metrics, "delete_older_than", "error") == 1

    @pytest.mark.asyncio
    async def test_connection_error(self, log) -> None:
        with pytest.raises(ReportStoreUnavailableError):
            await call_store("list_since", _raises(ConnectionResetError()), 1.0, log)

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, log, metrics) -> None:
        with pytest.raises(KeyError):
            await call_store("list_since", _raises(KeyError("x")), 1.0, log, metrics)

        assert _errors(metrics, "list_since", "error") == 0
