"""API request/response models."""

from beachradar.api.models.health import HealthResponse
from beachradar.api.models.report import (
    ConsensusListResponse,
    ConsensusResponse,
    PruneResponse,
    ReportErrorResponse,
    ReportFeedResponse,
    ReportResponse,
)

__all__: list[str] = [
    "ConsensusListResponse",
    "ConsensusResponse",
    "HealthResponse",
    "PruneResponse",
    "ReportErrorResponse",
    "ReportFeedResponse",
    "ReportResponse",
]
