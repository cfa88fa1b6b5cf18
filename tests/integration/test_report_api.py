"""Integration tests for the report API.

The full FastAPI app runs with the in-memory store and limiter.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from beachradar import __version__
from beachradar.api.dependencies.reports import (
    reset_report_dependencies,
    set_consensus_parameters,
    set_feed_config,
    set_rate_limiter,
    set_report_ingestion_config,
    set_report_store,
    set_retention_config,
    set_volume_limit_config,
)
from beachradar.api.main import app
from beachradar.config.report_config import (
    TEST_REPORT_INGESTION_CONFIG,
    FeedConfig,
    RetentionConfig,
    VolumeLimitConfig,
)
from beachradar.domain.errors.store import (
    RateLimiterUnavailableError,
    ReportStoreError,
)
from beachradar.domain.models.consensus import (
    DEFAULT_CONSENSUS_PARAMETERS,
    ConsensusParameters,
)
from beachradar.domain.models.report import CrowdLevel, Report
from beachradar.infrastructure.monitoring.metrics import get_metrics_collector
from beachradar.infrastructure.stubs.rate_limiter_stub import InMemoryRateLimiter
from beachradar.infrastructure.stubs.report_store_stub import ReportStoreStub

PRUNE_TOKEN = "s3cret-token"


@pytest.fixture
def store() -> ReportStoreStub:
    return ReportStoreStub()


@pytest.fixture
def limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter()


@pytest.fixture(autouse=True)
def wire_dependencies(store: ReportStoreStub, limiter: InMemoryRateLimiter):
    """Reset DI singletons and install in-memory backends for each test."""
    reset_report_dependencies()
    set_report_store(store)
    set_rate_limiter(limiter)
    set_report_ingestion_config(TEST_REPORT_INGESTION_CONFIG)
    set_feed_config(FeedConfig())
    set_consensus_parameters(DEFAULT_CONSENSUS_PARAMETERS)
    set_volume_limit_config(VolumeLimitConfig(max_requests=25, window_minutes=10))
    set_retention_config(RetentionConfig(retention_days=30, prune_token=PRUNE_TOKEN))
    yield
    reset_report_dependencies()


@pytest.fixture
def client() -> TestClient:
    """Create test client for the full app."""
    return TestClient(app, raise_server_exceptions=False)


def _payload(**overrides) -> dict:
    payload = {"locationId": "marina-01", "crowdLevel": 3, "reporterHash": "r-1"}
    payload.update(overrides)
    return payload


class TestSubmitReport:
    """POST /v1/reports."""

    def test_accepts_report(self, client: TestClient, store: ReportStoreStub) -> None:
        response = client.post(
            "/v1/reports",
            json=_payload(waterCondition=2, attribution={"src": "qr", "x": 1}),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["locationId"] == "marina-01"
        assert data["crowdLevel"] == 3
        assert data["waterCondition"] == 2
        assert "beachCondition" not in data
        assert data["attribution"] == {"src": "qr"}
        assert data["createdAt"].endswith("Z")
        assert "reporterHash" not in data
        assert len(store.get_all()) == 1

    def test_correlation_id_echoed(self, client: TestClient) -> None:
        response = client.post(
            "/v1/reports", json=_payload(), headers={"X-Correlation-ID": "abc-123"}
        )
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_duplicate_is_too_soon(self, client: TestClient) -> None:
        assert client.post("/v1/reports", json=_payload()).status_code == 201

        response = client.post("/v1/reports", json=_payload(crowdLevel=4))

        assert response.status_code == 429
        problem = response.json()["detail"]
        assert problem["error"] == "too_soon"
        assert problem["status"] == 429
        retry_after = int(response.headers["Retry-After"])
        assert 590 <= retry_after <= 600
        assert problem["retry_after_seconds"] == retry_after

    def test_invalid_json(self, client: TestClient) -> None:
        response = client.post(
            "/v1/reports",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_body"

    def test_payload_too_large(self, client: TestClient, store: ReportStoreStub) -> None:
        response = client.post(
            "/v1/reports",
            content=b"x" * 9000,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json()["detail"]["error"] == "payload_too_large"
        assert store.get_all() == []

    @pytest.mark.parametrize(
        ("payload", "code"),
        [
            (_payload(locationId=""), "invalid_location_id"),
            (_payload(crowdLevel=7), "invalid_crowd_level"),
            (_payload(reporterHash="h" * 129), "invalid_reporter_hash"),
            (_payload(waterCondition=0), "invalid_water_condition"),
            (_payload(beachCondition=4), "invalid_beach_condition"),
        ],
    )
    def test_validation_errors(self, client: TestClient, payload: dict, code: str) -> None:
        response = client.post("/v1/reports", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == code

    def test_volume_limit(self, client: TestClient) -> None:
        set_volume_limit_config(VolumeLimitConfig(max_requests=2, window_minutes=10))

        for n in range(2):
            response = client.post("/v1/reports", json=_payload(reporterHash=f"r-{n}"))
            assert response.status_code == 201

        response = client.post("/v1/reports", json=_payload(reporterHash="r-9"))

        assert response.status_code == 429
        assert response.json()["detail"]["error"] == "rate_limited"
        assert int(response.headers["Retry-After"]) >= 1

    def test_invalid_reports_never_reach_the_limiter(
        self, client: TestClient, limiter: InMemoryRateLimiter
    ) -> None:
        set_volume_limit_config(VolumeLimitConfig(max_requests=1, window_minutes=10))
        invalid = {"locationId": "m", "crowdLevel": 9, "reporterHash": "r"}

        for _ in range(2):
            response = client.post("/v1/reports", json=invalid)
            assert response.status_code == 400
            assert response.json()["detail"]["error"] == "invalid_crowd_level"

        assert limiter.tracked_keys() == 0
        assert client.post("/v1/reports", json=_payload()).status_code == 201

    def test_spoofed_forwarded_hops_share_one_budget(self, client: TestClient) -> None:
        set_volume_limit_config(VolumeLimitConfig(max_requests=1, window_minutes=10))

        first = client.post(
            "/v1/reports",
            json=_payload(reporterHash="r-1"),
            headers={"X-Forwarded-For": "198.51.100.1, 203.0.113.9"},
        )
        second = client.post(
            "/v1/reports",
            json=_payload(reporterHash="r-2"),
            headers={"X-Forwarded-For": "198.51.100.2, 203.0.113.9"},
        )

        assert first.status_code == 201
        assert second.status_code == 429
        assert second.json()["detail"]["error"] == "rate_limited"

    def test_body_rejections_are_counted(self, client: TestClient) -> None:
        client.post(
            "/v1/reports",
            content=b"x" * 9000,
            headers={"Content-Type": "application/json"},
        )
        client.post(
            "/v1/reports",
            content=b"[1, 2]",
            headers={"Content-Type": "application/json"},
        )
        metrics = get_metrics_collector()

        for reason in ("payload_too_large", "invalid_body"):
            assert (
                metrics.get_registry().get_sample_value(
                    "reports_rejected_total", {**metrics.base_labels, "reason": reason}
                )
                == 1
            )

    def test_volume_limiter_outage_fails_open(
        self, client: TestClient, limiter: InMemoryRateLimiter
    ) -> None:
        limiter.fail_with(RateLimiterUnavailableError("counter unavailable"))

        response = client.post("/v1/reports", json=_payload())

        assert response.status_code == 201

    def test_store_outage_fails_closed(
        self, client: TestClient, store: ReportStoreStub
    ) -> None:
        store.fail_with(ReportStoreError("append_unless_recent", "db down"))

        response = client.post("/v1/reports", json=_payload())

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "store_unavailable"


class TestFeedAndConsensus:
    """GET /v1/reports and consensus endpoints."""

    def test_feed_newest_first_with_cache_header(self, client: TestClient) -> None:
        client.post("/v1/reports", json=_payload(reporterHash="a"))
        client.post("/v1/reports", json=_payload(reporterHash="b", locationId="pier-02"))

        response = client.get("/v1/reports")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == (
            "public, max-age=0, s-maxage=15, stale-while-revalidate=30"
        )
        data = response.json()
        assert data["count"] == 2
        created = [r["createdAt"] for r in data["reports"]]
        assert created == sorted(created, reverse=True)

    def test_location_consensus(self, client: TestClient) -> None:
        for n, level in enumerate((4, 4, 2)):
            client.post(
                "/v1/reports", json=_payload(reporterHash=f"r-{n}", crowdLevel=level)
            )

        response = client.get("/v1/locations/marina-01/consensus")

        assert response.status_code == 200
        data = response.json()
        assert data["locationId"] == "marina-01"
        assert data["crowdLevel"] == 4
        assert data["state"] == "LIVE"
        assert data["reportsCount"] == 3
        assert 0.15 <= data["confidence"] <= 1.0
        assert "Cache-Control" in response.headers

    def test_live_threshold_follows_parameters(
        self, client: TestClient, store: ReportStoreStub
    ) -> None:
        ten_minutes_ago = datetime.now(timezone.utc) - timedelta(minutes=10)
        store.add_report(
            Report.create("marina-01", CrowdLevel.BUSY, "r-1", created_at=ten_minutes_ago)
        )

        assert client.get("/v1/locations/marina-01/consensus").json()["state"] == "RECENT"

        set_consensus_parameters(ConsensusParameters(live_threshold_minutes=15.0))

        assert client.get("/v1/locations/marina-01/consensus").json()["state"] == "LIVE"

    def test_feed_cache_header_follows_config(self, client: TestClient) -> None:
        set_feed_config(
            FeedConfig(shared_max_age_seconds=60, stale_while_revalidate_seconds=120)
        )

        response = client.get("/v1/reports")

        assert response.headers["Cache-Control"] == (
            "public, max-age=0, s-maxage=60, stale-while-revalidate=120"
        )

    def test_unreported_location_is_predicted(self, client: TestClient) -> None:
        data = client.get("/v1/locations/cove-09/consensus").json()

        assert data["state"] == "PRED"
        assert data["crowdLevel"] == 1
        assert data["confidence"] == 0.15
        assert data["updatedAt"] is None

    def test_consensus_for_several_locations(self, client: TestClient) -> None:
        client.post("/v1/reports", json=_payload())

        response = client.get(
            "/v1/consensus", params=[("location_id", "marina-01"), ("location_id", "cove-09")]
        )

        assert response.status_code == 200
        states = {s["locationId"]: s["state"] for s in response.json()["locations"]}
        assert states == {"marina-01": "LIVE", "cove-09": "PRED"}

    def test_consensus_rejects_oversized_location_id(self, client: TestClient) -> None:
        response = client.get("/v1/consensus", params={"location_id": "x" * 97})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_location_id"

    def test_feed_store_outage(self, client: TestClient, store: ReportStoreStub) -> None:
        store.fail_with(ReportStoreError("list_since"))

        response = client.get("/v1/reports")

        assert response.status_code == 503


class TestPrune:
    """GET /v1/reports/prune."""

    @pytest.fixture(autouse=True)
    def old_reports(self, store: ReportStoreStub) -> None:
        recent = Report.create("marina-01", CrowdLevel.BUSY, "r-1")
        old = Report.create(
            "marina-01",
            CrowdLevel.EMPTY,
            "r-2",
            created_at=recent.created_at - timedelta(days=40),
        )
        store.add_report(recent)
        store.add_report(old)

    def test_requires_token(self, client: TestClient) -> None:
        response = client.get("/v1/reports/prune")

        assert response.status_code == 401
        assert response.headers["Cache-Control"] == "no-store"

    def test_wrong_token(self, client: TestClient) -> None:
        response = client.get(
            "/v1/reports/prune", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    def test_dry_run(self, client: TestClient, store: ReportStoreStub) -> None:
        response = client.get(
            "/v1/reports/prune",
            params={"dry": "1"},
            headers={"Authorization": f"Bearer {PRUNE_TOKEN}"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dryRun"] is True
        assert data["candidateCount"] == 1
        assert data["retentionDays"] == 30
        assert "deleted" not in data
        assert len(store.get_all()) == 2

    def test_prune_deletes(self, client: TestClient, store: ReportStoreStub) -> None:
        response = client.get(
            "/v1/reports/prune", headers={"Authorization": f"Bearer {PRUNE_TOKEN}"}
        )

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        assert response.json()["deleted"] == 1
        assert len(store.get_all()) == 1


class TestOperationalEndpoints:
    """Health and metrics."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["version"] == __version__

    def test_metrics_after_submission(self, client: TestClient) -> None:
        client.post("/v1/reports", json=_payload())

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "reports_accepted_total" in response.text
