"""RFC 7807 problem responses for the report API.

Every error body carries the standard problem fields plus an `error` code
that clients switch on. Rejections that can be retried also carry
retry_after_seconds and a Retry-After header.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request

from beachradar.domain.errors.rate_limit import AbuseControlError
from beachradar.domain.errors.store import ReportStoreUnavailableError
from beachradar.domain.errors.validation import (
    PAYLOAD_TOO_LARGE,
    ReportValidationError,
)

ERROR_TYPE_PREFIX = "urn:beachradar:report:"


def problem(
    request: Request,
    status_code: int,
    error: str,
    title: str,
    detail: str,
    headers: dict[str, str] | None = None,
    **extensions: Any,
) -> HTTPException:
    """Build an HTTPException with an RFC 7807 body.

    Args:
        request: Request that failed.
        status_code: HTTP status.
        error: Machine-readable error code.
        title: Short human-readable title.
        detail: Human-readable explanation.
        headers: Extra response headers.
        **extensions: Extra problem members.

    Returns:
        HTTPException ready to raise.
    """
    body: dict[str, Any] = {
        "type": f"{ERROR_TYPE_PREFIX}{error.replace('_', '-')}",
        "title": title,
        "status": status_code,
        "detail": detail,
        "instance": str(request.url.path),
        "error": error,
    }
    body.update(extensions)
    return HTTPException(status_code=status_code, detail=body, headers=headers)


def validation_problem(request: Request, exc: ReportValidationError) -> HTTPException:
    """400 (or 413 for oversized bodies) for a validation failure."""
    if exc.code == PAYLOAD_TOO_LARGE:
        return problem(request, 413, exc.code, "Payload Too Large", exc.detail)
    return problem(request, 400, exc.code, "Invalid Report", exc.detail)


def abuse_control_problem(request: Request, exc: AbuseControlError) -> HTTPException:
    """429 with Retry-After for cooldown and volume limit rejections."""
    title = "Report Too Soon" if exc.code == "too_soon" else "Rate Limit Exceeded"
    return problem(
        request,
        429,
        exc.code,
        title,
        str(exc),
        headers={"Retry-After": str(exc.retry_after_seconds)},
        retry_after_seconds=exc.retry_after_seconds,
    )


def store_unavailable_problem(
    request: Request, exc: ReportStoreUnavailableError
) -> HTTPException:
    """503 when the report store failed or timed out."""
    return problem(
        request,
        503,
        "store_unavailable",
        "Report Store Unavailable",
        "Reports are temporarily unavailable, try again shortly",
        reason=exc.reason,
    )
