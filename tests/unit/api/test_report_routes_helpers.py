"""Unit tests for report route helpers and problem responses."""

from datetime import timedelta

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from beachradar.api.errors import (
    abuse_control_problem,
    problem,
    store_unavailable_problem,
    validation_problem,
)
from beachradar.api.middleware.logging_middleware import (
    CORRELATION_HEADER,
    LoggingMiddleware,
)
from beachradar.api.routes.reports import client_context
from beachradar.domain.errors.rate_limit import (
    ReportTooSoonError,
    VolumeLimitExceededError,
)
from beachradar.domain.errors.store import ReportStoreUnavailableError
from beachradar.domain.errors.validation import (
    INVALID_CROWD_LEVEL,
    PAYLOAD_TOO_LARGE,
    ReportValidationError,
)
from tests.helpers.reports import FIXED_NOW


def _request(
    path: str = "/v1/reports",
    headers: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("203.0.113.7", 5000),
) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "query_string": b"",
        "headers": Headers(headers or {}).raw,
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class TestClientContext:
    """Tests for client_context."""

    def test_uses_hop_appended_by_trusted_proxy(self) -> None:
        request = _request(
            headers={
                "x-forwarded-for": "198.51.100.4, 192.0.2.10",
                "user-agent": "SurfApp/2.1",
            }
        )

        context = client_context(request, trusted_proxy_hops=1)

        assert context.network_identity == "192.0.2.10"
        assert context.user_agent == "SurfApp/2.1"

    def test_two_trusted_proxies(self) -> None:
        request = _request(
            headers={"x-forwarded-for": "spoofed, 198.51.100.4, 10.0.0.1"}
        )

        context = client_context(request, trusted_proxy_hops=2)

        assert context.network_identity == "198.51.100.4"

    def test_header_ignored_without_trusted_proxies(self) -> None:
        request = _request(headers={"x-forwarded-for": "198.51.100.4"})

        context = client_context(request, trusted_proxy_hops=0)

        assert context.network_identity == "203.0.113.7"

    def test_too_few_hops_falls_back_to_peer(self) -> None:
        request = _request(headers={"x-forwarded-for": "198.51.100.4"})

        context = client_context(request, trusted_proxy_hops=2)

        assert context.network_identity == "203.0.113.7"

    def test_falls_back_to_peer_address(self) -> None:
        context = client_context(_request())

        assert context.network_identity == "203.0.113.7"
        assert context.user_agent is None

    def test_no_address_at_all(self) -> None:
        context = client_context(_request(client=None))

        assert context.network_identity is None


class TestProblems:
    """Tests for RFC 7807 problem builders."""

    def test_problem_body(self) -> None:
        exc = problem(_request(), 418, "some_code", "Title", "Details", extra=1)

        assert isinstance(exc, HTTPException)
        assert exc.status_code == 418
        assert exc.detail == {
            "type": "urn:beachradar:report:some-code",
            "title": "Title",
            "status": 418,
            "detail": "Details",
            "instance": "/v1/reports",
            "error": "some_code",
            "extra": 1,
        }

    def test_validation_is_400(self) -> None:
        exc = validation_problem(
            _request(), ReportValidationError(INVALID_CROWD_LEVEL)
        )

        assert exc.status_code == 400
        assert exc.detail["error"] == INVALID_CROWD_LEVEL

    def test_oversized_body_is_413(self) -> None:
        exc = validation_problem(_request(), ReportValidationError(PAYLOAD_TOO_LARGE))

        assert exc.status_code == 413

    def test_too_soon_carries_retry_after(self) -> None:
        error = ReportTooSoonError("marina-01", FIXED_NOW, 10, 420)

        exc = abuse_control_problem(_request(), error)

        assert exc.status_code == 429
        assert exc.headers == {"Retry-After": "420"}
        assert exc.detail["error"] == "too_soon"
        assert exc.detail["title"] == "Report Too Soon"
        assert exc.detail["retry_after_seconds"] == 420

    def test_volume_limit_title(self) -> None:
        error = VolumeLimitExceededError(25, FIXED_NOW + timedelta(minutes=4), 240)

        exc = abuse_control_problem(_request(), error)

        assert exc.detail["error"] == "rate_limited"
        assert exc.detail["title"] == "Rate Limit Exceeded"

    @pytest.mark.parametrize("reason", ["timeout", "error"])
    def test_store_unavailable(self, reason: str) -> None:
        exc = store_unavailable_problem(
            _request(), ReportStoreUnavailableError("list_since", reason)
        )

        assert exc.status_code == 503
        assert exc.detail["error"] == "store_unavailable"
        assert exc.detail["reason"] == reason


class TestLoggingMiddleware:
    """Tests for correlation id handling."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = FastAPI()
        app.add_middleware(LoggingMiddleware)

        @app.get("/ping")
        async def ping() -> dict[str, str]:
            return {"status": "ok"}

        return TestClient(app)

    def test_echoes_client_id(self, client: TestClient) -> None:
        response = client.get("/ping", headers={CORRELATION_HEADER: "req-42"})

        assert response.headers[CORRELATION_HEADER] == "req-42"

    def test_generates_id_when_missing(self, client: TestClient) -> None:
        response = client.get("/ping")

        assert response.headers[CORRELATION_HEADER]

    def test_replaces_overlong_id(self, client: TestClient) -> None:
        response = client.get("/ping", headers={CORRELATION_HEADER: "x" * 200})

        assert response.headers[CORRELATION_HEADER] != "x" * 200
