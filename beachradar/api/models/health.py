"""Health response model."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness payload.

    `store` names the active report backend: "postgres" or "memory".
    """

    status: str = "healthy"
    version: str
    store: str
