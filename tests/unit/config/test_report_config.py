"""Unit tests for report and consensus configuration."""

import pytest

from beachradar.config.consensus_config import load_consensus_parameters
from beachradar.config.report_config import (
    FeedConfig,
    ReportIngestionConfig,
    RetentionConfig,
    VolumeLimitConfig,
)


class TestReportIngestionConfig:
    """Tests for ReportIngestionConfig."""

    def test_defaults(self) -> None:
        config = ReportIngestionConfig()
        assert config.rate_limit_minutes == 10
        assert config.cooldown_seconds == 600
        assert config.max_body_bytes == 8192
        assert config.store_timeout_seconds == 3.0

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_RATE_LIMIT_MINUTES", "15")
        monkeypatch.setenv("REPORT_STORE_TIMEOUT_SECONDS", "1.5")
        config = ReportIngestionConfig.from_environment()
        assert config.rate_limit_minutes == 15
        assert config.store_timeout_seconds == 1.5

    def test_invalid_environment_value_falls_back(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REPORT_RATE_LIMIT_MINUTES", "soon")
        assert ReportIngestionConfig.from_environment().rate_limit_minutes == 10

    def test_rejects_non_positive_cooldown(self) -> None:
        with pytest.raises(ValueError, match="rate_limit_minutes"):
            ReportIngestionConfig(rate_limit_minutes=0)


class TestVolumeLimitConfig:
    """Tests for VolumeLimitConfig."""

    def test_defaults(self) -> None:
        config = VolumeLimitConfig()
        assert config.enabled
        assert config.max_requests == 25
        assert config.window_seconds == 600

    def test_can_be_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VOLUME_LIMIT_ENABLED", "false")
        assert not VolumeLimitConfig.from_environment().enabled

    def test_trusted_proxy_hops(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert VolumeLimitConfig().trusted_proxy_hops == 1

        monkeypatch.setenv("TRUSTED_PROXY_HOPS", "0")
        assert VolumeLimitConfig.from_environment().trusted_proxy_hops == 0

        monkeypatch.setenv("TRUSTED_PROXY_HOPS", "-3")
        assert VolumeLimitConfig.from_environment().trusted_proxy_hops == 1

    def test_negative_proxy_hops_rejected(self) -> None:
        with pytest.raises(ValueError, match="trusted_proxy_hops"):
            VolumeLimitConfig(trusted_proxy_hops=-1)


class TestFeedConfig:
    """Tests for FeedConfig."""

    def test_cache_control_header(self) -> None:
        assert FeedConfig().cache_control_header() == (
            "public, max-age=0, s-maxage=15, stale-while-revalidate=30"
        )


class TestRetentionConfig:
    """Tests for RetentionConfig."""

    def test_cron_secret_preferred(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CRON_SECRET", "cron")
        monkeypatch.setenv("REPORTS_PRUNE_TOKEN", "prune")
        assert RetentionConfig.from_environment().prune_token == "cron"

    def test_prune_token_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CRON_SECRET", raising=False)
        monkeypatch.setenv("REPORTS_PRUNE_TOKEN", " 'prune' ")
        assert RetentionConfig.from_environment().prune_token == "prune"

    @pytest.mark.parametrize("value", ["0", "366", "many"])
    def test_out_of_range_days_fall_back_to_default(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("REPORTS_RETENTION_DAYS", value)
        assert RetentionConfig.from_environment().retention_days == 30

    def test_token_not_in_repr(self) -> None:
        assert "s3cret" not in repr(RetentionConfig(prune_token="s3cret"))

    def test_rejects_out_of_range_days(self) -> None:
        with pytest.raises(ValueError, match="retention_days"):
            RetentionConfig(retention_days=400)


class TestConsensusParameters:
    """Tests for load_consensus_parameters."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("CONSENSUS_TTL_MINUTES", "CONSENSUS_DECAY_MINUTES"):
            monkeypatch.delenv(name, raising=False)
        params = load_consensus_parameters()
        assert params.ttl_minutes == 30
        assert params.decay_minutes == 18
        assert params.confidence_floor == 0.15

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONSENSUS_TTL_MINUTES", "45")
        monkeypatch.setenv("CONSENSUS_AGREEMENT_WEIGHT", "0.5")
        params = load_consensus_parameters()
        assert params.ttl_minutes == 45
        assert params.agreement_weight == 0.5
