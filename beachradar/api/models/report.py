"""Report API request/response models.

JSON field names are camelCase on the wire (locationId, crowdLevel, ...);
Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Annotated, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from beachradar.application.services.report_retention_service import PruneResult
from beachradar.domain.models.consensus import ConsensusSnapshot
from beachradar.domain.models.report import Report

# ISO 8601 with Z suffix
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]

AttributionValue = Union[str, int, float, bool]


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportResponse(CamelModel):
    """A persisted report as returned to clients.

    Attributes:
        id: Report identifier.
        location_id: Beach identifier.
        crowd_level: Crowd level 1-4.
        water_condition: Water reading 1-4, if reported.
        beach_condition: Beach reading 1-3, if reported.
        created_at: Server acceptance time.
        attribution: Sanitized attribution tags.
    """

    id: UUID
    location_id: str
    crowd_level: int = Field(..., ge=1, le=4)
    water_condition: int | None = Field(default=None, ge=1, le=4)
    beach_condition: int | None = Field(default=None, ge=1, le=3)
    created_at: DateTimeWithZ
    attribution: dict[str, AttributionValue] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, report: Report) -> "ReportResponse":
        return cls(
            id=report.id,
            location_id=report.location_id,
            crowd_level=int(report.crowd_level),
            water_condition=(
                int(report.water_condition) if report.water_condition is not None else None
            ),
            beach_condition=(
                int(report.beach_condition) if report.beach_condition is not None else None
            ),
            created_at=report.created_at,
            attribution=dict(report.attribution),
        )


class ReportFeedResponse(CamelModel):
    """Recent reports, newest first."""

    ok: bool = True
    count: int
    reports: list[ReportResponse]


class ConsensusResponse(CamelModel):
    """Consensus snapshot for one location.

    Attributes:
        location_id: Beach identifier.
        crowd_level: Consensus crowd level (1 when predicted).
        state: LIVE, RECENT or PRED.
        confidence: Confidence in [0, 1].
        reports_count: Reports that contributed.
        updated_at: Newest contributing report, None for PRED.
        water_condition: Consensus water reading, if any.
        beach_condition: Consensus beach reading, if any.
    """

    location_id: str
    crowd_level: int
    state: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reports_count: int
    updated_at: DateTimeWithZ | None = None
    water_condition: int | None = None
    beach_condition: int | None = None

    @classmethod
    def from_domain(cls, snapshot: ConsensusSnapshot) -> "ConsensusResponse":
        return cls(
            location_id=snapshot.location_id,
            crowd_level=int(snapshot.crowd_level),
            state=snapshot.state.value,
            confidence=round(snapshot.confidence, 4),
            reports_count=snapshot.reports_count,
            updated_at=snapshot.updated_at,
            water_condition=(
                int(snapshot.water_condition)
                if snapshot.water_condition is not None
                else None
            ),
            beach_condition=(
                int(snapshot.beach_condition)
                if snapshot.beach_condition is not None
                else None
            ),
        )


class ConsensusListResponse(CamelModel):
    """Consensus snapshots for several locations."""

    ok: bool = True
    locations: list[ConsensusResponse]


class PruneResponse(CamelModel):
    """Outcome of the retention job.

    candidate_count is set on dry runs, deleted otherwise.
    """

    ok: bool = True
    dry_run: bool
    candidate_count: int | None = None
    deleted: int | None = None
    retention_days: int
    cutoff: DateTimeWithZ
    expired_windows_purged: int = 0

    @classmethod
    def from_result(cls, result: PruneResult) -> "PruneResponse":
        return cls(
            dry_run=result.dry_run,
            candidate_count=result.affected if result.dry_run else None,
            deleted=None if result.dry_run else result.affected,
            retention_days=result.retention_days,
            cutoff=result.cutoff,
            expired_windows_purged=result.expired_windows_purged,
        )


class ReportErrorResponse(BaseModel):
    """Error response for report operations (RFC 7807).

    Attributes:
        type: Error type URI.
        title: Human-readable error title.
        status: HTTP status code.
        detail: Detailed error message.
        instance: Request path that caused the error.
        error: Machine-readable error code.
        retry_after_seconds: Seconds to wait, for 429 responses.
    """

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error message")
    instance: str = Field(..., description="Request path that caused the error")
    error: str = Field(..., description="Machine-readable error code")
    retry_after_seconds: int | None = Field(
        default=None, description="Seconds to wait before retrying"
    )
