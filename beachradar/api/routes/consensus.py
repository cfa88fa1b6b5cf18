"""Crowd consensus endpoints.

GET /v1/locations/{location_id}/consensus   one location
GET /v1/consensus?location_id=a&location_id=b   several (or every recent) location
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from beachradar.api.dependencies.reports import get_report_feed_service
from beachradar.api.errors import problem, store_unavailable_problem
from beachradar.api.models.report import (
    ConsensusListResponse,
    ConsensusResponse,
    ReportErrorResponse,
)
from beachradar.application.services.report_feed_service import ReportFeedService
from beachradar.domain.errors.store import ReportStoreUnavailableError
from beachradar.domain.errors.validation import INVALID_LOCATION_ID
from beachradar.domain.models.report import MAX_LOCATION_ID_LENGTH

router = APIRouter(prefix="/v1", tags=["consensus"])

MAX_LOCATIONS_PER_REQUEST = 200


@router.get(
    "/locations/{location_id}/consensus",
    response_model=ConsensusResponse,
    responses={
        503: {"model": ReportErrorResponse, "description": "Report store unavailable"},
    },
    summary="Consensus for one location",
)
async def get_location_consensus(
    request: Request,
    response: Response,
    location_id: str = Path(..., min_length=1, max_length=MAX_LOCATION_ID_LENGTH),
    feed: ReportFeedService = Depends(get_report_feed_service),
) -> ConsensusResponse:
    """Current consensus snapshot. Locations without recent reports are PRED."""
    try:
        snapshot = await feed.consensus_for(location_id)
    except ReportStoreUnavailableError as e:
        raise store_unavailable_problem(request, e) from None

    response.headers["Cache-Control"] = feed.config.cache_control_header()
    return ConsensusResponse.from_domain(snapshot)


@router.get(
    "/consensus",
    response_model=ConsensusListResponse,
    responses={
        400: {"model": ReportErrorResponse, "description": "Invalid location id"},
        503: {"model": ReportErrorResponse, "description": "Report store unavailable"},
    },
    summary="Consensus for several locations",
)
async def list_consensus(
    request: Request,
    response: Response,
    location_id: list[str] | None = Query(default=None),
    feed: ReportFeedService = Depends(get_report_feed_service),
) -> ConsensusListResponse:
    """Snapshots for the requested locations, or for every location reported
    within the lookback window when none are given."""
    wanted: list[str] | None = None
    if location_id:
        wanted = list(dict.fromkeys(v.strip() for v in location_id if v.strip()))
        if len(wanted) > MAX_LOCATIONS_PER_REQUEST or any(
            len(v) > MAX_LOCATION_ID_LENGTH for v in wanted
        ):
            raise problem(
                request,
                400,
                INVALID_LOCATION_ID,
                "Invalid Location",
                f"Up to {MAX_LOCATIONS_PER_REQUEST} location ids of at most "
                f"{MAX_LOCATION_ID_LENGTH} characters",
            )

    try:
        snapshots = await feed.consensus_for_many(wanted)
    except ReportStoreUnavailableError as e:
        raise store_unavailable_problem(request, e) from None

    response.headers["Cache-Control"] = feed.config.cache_control_header()
    return ConsensusListResponse(
        locations=[ConsensusResponse.from_domain(s) for s in snapshots.values()]
    )
