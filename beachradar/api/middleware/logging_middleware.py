"""Request logging with correlation id propagation.

A client supplied X-Correlation-ID is reused when it is short and printable;
otherwise a fresh id is generated. The id is bound for the duration of the
request, echoed on the response, and attached to the completion log line.

Client addresses and user agents are never logged here; they only feed the
hashed volume limiter key.
"""

import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from beachradar.infrastructure.observability.correlation import (
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

CORRELATION_HEADER = "X-Correlation-ID"

MAX_CORRELATION_ID_LENGTH = 128


def resolve_correlation_id(header_value: str | None) -> str:
    """Reuse the client's correlation id when acceptable, else generate one."""
    candidate = (header_value or "").strip()
    if (
        not candidate
        or len(candidate) > MAX_CORRELATION_ID_LENGTH
        or not candidate.isprintable()
    ):
        return generate_correlation_id()
    return candidate


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id per request and logs method, path, status and timing."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        token = set_correlation_id(correlation_id)
        log = structlog.get_logger().bind(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception(
                "request_failed",
                duration_ms=_elapsed_ms(started),
                error_type=type(exc).__name__,
            )
            raise
        finally:
            reset_correlation_id(token)

        emit = log.warning if response.status_code >= 500 else log.info
        emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
