"""Liveness endpoint. Does not touch the database."""

from fastapi import APIRouter

from beachradar import __version__
from beachradar.api.models.health import HealthResponse
from beachradar.bootstrap.database import is_database_configured

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        version=__version__,
        store="postgres" if is_database_configured() else "memory",
    )
