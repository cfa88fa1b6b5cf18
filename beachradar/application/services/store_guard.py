"""Bounded-deadline wrapper for report store calls.

Store reads and writes must never hang a request and must never be mistaken
for success. Every call goes through call_store, which applies the configured
deadline and turns any failure into ReportStoreUnavailableError.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from beachradar.domain.errors.store import (
    ReportStoreError,
    ReportStoreUnavailableError,
)
from beachradar.infrastructure.monitoring.metrics import MetricsCollector

T = TypeVar("T")


async def call_store(
    operation: str,
    awaitable: Awaitable[T],
    timeout_seconds: float,
    log: structlog.BoundLogger,
    metrics: MetricsCollector | None = None,
) -> T:
    """Await a store call under a deadline.

    Args:
        operation: Store operation name, used in logs and metrics.
        awaitable: The pending store call.
        timeout_seconds: Deadline for the call.
        log: Operation-scoped logger.
        metrics: Optional collector for store error counters.

    Returns:
        The store call's result.

    Raises:
        ReportStoreUnavailableError: On timeout or store failure.
    """
    started = time.perf_counter()
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        log.error("report_store_timeout", store_operation=operation, timeout_seconds=timeout_seconds)
        if metrics is not None:
            metrics.increment_store_errors(operation, "timeout")
        raise ReportStoreUnavailableError(operation, reason="timeout") from None
    except ReportStoreUnavailableError:
        if metrics is not None:
            metrics.increment_store_errors(operation, "error")
        raise
    except (ReportStoreError, OSError) as exc:
        log.error("report_store_failed", store_operation=operation, error=str(exc))
        if metrics is not None:
            metrics.increment_store_errors(operation, "error")
        raise ReportStoreUnavailableError(operation, reason="error") from exc
    finally:
        if metrics is not None:
            metrics.observe_store_call(operation, time.perf_counter() - started)
