"""
Pytest configuration and shared fixtures for Beach Radar tests.

Testing Standards:
- Async tests are marked with pytest.mark.asyncio (auto mode also enabled)
- Service tests pass `now` explicitly instead of reading the clock
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from datetime import datetime

import pytest

from beachradar.infrastructure.monitoring.metrics import reset_metrics_collector
from tests.helpers.reports import FIXED_NOW


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    """A fixed, timezone-aware evaluation time."""
    return FIXED_NOW


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Give every test its own metrics registry."""
    reset_metrics_collector()
    yield
    reset_metrics_collector()
