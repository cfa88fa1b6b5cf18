"""Report submission, feed and retention endpoints.

POST /v1/reports       submit one report
GET  /v1/reports       recent reports, newest first
GET  /v1/reports/prune retention job (bearer token)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request, Response

from beachradar.api.dependencies.reports import (
    get_report_feed_service,
    get_report_ingestion_config,
    get_report_ingestion_service,
    get_report_retention_service,
    get_volume_limit_config,
    get_volume_limit_service,
)
from beachradar.api.errors import (
    abuse_control_problem,
    problem,
    store_unavailable_problem,
    validation_problem,
)
from beachradar.api.models.report import (
    PruneResponse,
    ReportErrorResponse,
    ReportFeedResponse,
    ReportResponse,
)
from beachradar.application.services.report_feed_service import ReportFeedService
from beachradar.application.services.report_ingestion_service import (
    ReportIngestionService,
)
from beachradar.application.services.report_retention_service import (
    ReportRetentionService,
)
from beachradar.application.services.report_validation import decode_request_body
from beachradar.application.services.volume_limit_service import (
    ClientContext,
    VolumeLimitService,
)
from beachradar.config.report_config import ReportIngestionConfig, VolumeLimitConfig
from beachradar.domain.errors.rate_limit import AbuseControlError
from beachradar.domain.errors.store import ReportStoreUnavailableError
from beachradar.domain.errors.validation import (
    PAYLOAD_TOO_LARGE,
    ReportValidationError,
)

router = APIRouter(prefix="/v1/reports", tags=["reports"])

NO_STORE = "no-store"


def _declared_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def client_context(request: Request, trusted_proxy_hops: int = 1) -> ClientContext:
    """Client address and user agent.

    With N trusted proxies the address is the N-th X-Forwarded-For entry from
    the right, the one the outermost proxy appended. Entries further left are
    client supplied. Without the header, or with too few entries, the peer
    address is used.
    """
    network_identity = None
    if trusted_proxy_hops > 0:
        hops = [
            hop.strip()
            for hop in request.headers.get("x-forwarded-for", "").split(",")
            if hop.strip()
        ]
        if len(hops) >= trusted_proxy_hops:
            network_identity = hops[-trusted_proxy_hops]
    if network_identity is None and request.client is not None:
        network_identity = request.client.host
    return ClientContext(
        network_identity=network_identity,
        user_agent=request.headers.get("user-agent"),
    )


async def _read_body(request: Request, max_bytes: int) -> bytes:
    declared = _declared_length(request.headers.get("content-length"))
    if declared is not None and declared > max_bytes:
        raise ReportValidationError(PAYLOAD_TOO_LARGE, f"Body exceeds {max_bytes} bytes")
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            raise ReportValidationError(
                PAYLOAD_TOO_LARGE, f"Body exceeds {max_bytes} bytes"
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "",
    response_model=ReportResponse,
    response_model_exclude_none=True,
    status_code=201,
    responses={
        400: {"model": ReportErrorResponse, "description": "Invalid report"},
        413: {"model": ReportErrorResponse, "description": "Body too large"},
        429: {
            "model": ReportErrorResponse,
            "description": "Cooldown active or request volume exceeded",
        },
        503: {"model": ReportErrorResponse, "description": "Report store unavailable"},
    },
    summary="Submit a crowd report",
)
async def submit_report(
    request: Request,
    response: Response,
    ingestion: ReportIngestionService = Depends(get_report_ingestion_service),
    volume_limit: VolumeLimitService = Depends(get_volume_limit_service),
    config: ReportIngestionConfig = Depends(get_report_ingestion_config),
    volume_config: VolumeLimitConfig = Depends(get_volume_limit_config),
) -> ReportResponse:
    """Submit one report for a location.

    The body is size-checked, decoded and fully validated before any I/O.
    Only then does the anonymous volume limiter run (letting the request
    through if its backend is down), followed by the cooldown-guarded append.
    """
    response.headers["Cache-Control"] = NO_STORE
    try:
        raw = await _read_body(request, config.max_body_bytes)
        payload = decode_request_body(
            raw,
            _declared_length(request.headers.get("content-length")),
            config.max_body_bytes,
        )
    except ReportValidationError as e:
        ingestion.record_rejection(e.code)
        raise validation_problem(request, e) from None

    try:
        submission = ingestion.validate(payload)
    except ReportValidationError as e:
        raise validation_problem(request, e) from None

    client = client_context(request, volume_config.trusted_proxy_hops)
    try:
        await volume_limit.check(client)
        report = await ingestion.accept(submission, client)
    except AbuseControlError as e:
        raise abuse_control_problem(request, e) from None
    except ReportStoreUnavailableError as e:
        raise store_unavailable_problem(request, e) from None

    return ReportResponse.from_domain(report)


@router.get(
    "",
    response_model=ReportFeedResponse,
    response_model_exclude_none=True,
    responses={
        503: {"model": ReportErrorResponse, "description": "Report store unavailable"},
    },
    summary="List recent reports",
)
async def list_reports(
    request: Request,
    response: Response,
    feed: ReportFeedService = Depends(get_report_feed_service),
) -> ReportFeedResponse:
    """Reports from the lookback window, newest first."""
    try:
        reports = await feed.list_recent()
    except ReportStoreUnavailableError as e:
        raise store_unavailable_problem(request, e) from None

    response.headers["Cache-Control"] = feed.config.cache_control_header()
    return ReportFeedResponse(
        count=len(reports),
        reports=[ReportResponse.from_domain(report) for report in reports],
    )


@router.get(
    "/prune",
    response_model=PruneResponse,
    response_model_exclude_none=True,
    responses={
        401: {"model": ReportErrorResponse, "description": "Missing or wrong token"},
        503: {"model": ReportErrorResponse, "description": "Report store unavailable"},
    },
    summary="Delete reports past the retention window",
)
async def prune_reports(
    request: Request,
    response: Response,
    dry: str | None = Query(default=None, description="1 to only count candidates"),
    authorization: str | None = Header(default=None),
    retention: ReportRetentionService = Depends(get_report_retention_service),
) -> PruneResponse:
    """Run the retention job. Requires `Authorization: Bearer <token>`."""
    no_store = {"Cache-Control": NO_STORE}
    if not retention.is_authorized(authorization):
        raise problem(
            request,
            401,
            "unauthorized",
            "Unauthorized",
            "A valid bearer token is required",
            headers={**no_store, "WWW-Authenticate": "Bearer"},
        )

    try:
        result = await retention.prune(dry_run=dry == "1")
    except ReportStoreUnavailableError as e:
        exc = store_unavailable_problem(request, e)
        exc.headers = no_store
        raise exc from None

    response.headers["Cache-Control"] = NO_STORE
    return PruneResponse.from_result(result)
