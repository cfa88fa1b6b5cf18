"""Prometheus scrape endpoint (mounted without the /v1 prefix)."""

from fastapi import APIRouter, Response

from beachradar.infrastructure.monitoring.metrics import (
    METRICS_CONTENT_TYPE,
    generate_metrics,
)

router = APIRouter(tags=["metrics"], include_in_schema=False)


@router.get("/metrics", response_class=Response)
async def get_metrics() -> Response:
    return Response(content=generate_metrics(), media_type=METRICS_CONTENT_TYPE)
