"""FastAPI application entry point for Beach Radar.

Run with:
    uvicorn beachradar.api.main:app
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from structlog import get_logger

from beachradar import __version__
from beachradar.api.dependencies.reports import get_rate_limiter, get_report_store
from beachradar.api.middleware.logging_middleware import LoggingMiddleware
from beachradar.api.routes.consensus import router as consensus_router
from beachradar.api.routes.health import router as health_router
from beachradar.api.routes.metrics import router as metrics_router
from beachradar.api.routes.reports import router as reports_router
from beachradar.bootstrap.database import close_database_engine
from beachradar.infrastructure.observability.logging import configure_structlog

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create database tables when a Postgres backend is configured."""
    for backend in (get_report_store(), get_rate_limiter()):
        ensure_schema = getattr(backend, "ensure_schema", None)
        if ensure_schema is not None:
            await ensure_schema()
            logger.info("schema_ready", backend=type(backend).__name__)
    yield
    await close_database_engine()


def create_app() -> FastAPI:
    """Build the API application."""
    load_dotenv()
    configure_structlog(environment=os.environ.get("ENVIRONMENT", "development"))

    app = FastAPI(
        title="Beach Radar API",
        description="Crowd reports and live consensus for beaches",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(LoggingMiddleware)
    app.include_router(reports_router)
    app.include_router(consensus_router)
    app.include_router(health_router)
    app.include_router(metrics_router)
    return app


app = create_app()
