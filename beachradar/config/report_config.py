"""Report ingestion, volume limiting, feed and retention configuration.

Every value can be overridden via environment variables for production
tuning.

Environment Variables (Ingestion):
- REPORT_RATE_LIMIT_MINUTES: Per-reporter cooldown per location (default: 10)
- REPORT_MAX_BODY_BYTES: Maximum request body size (default: 8192)
- REPORT_STORE_TIMEOUT_SECONDS: Deadline for store operations (default: 3.0)
- REPORT_MAX_USER_AGENT_LENGTH: Stored user agent truncation (default: 256)

Environment Variables (Volume limiter):
- VOLUME_LIMIT_ENABLED: Enable the anonymous volume limiter (default: true)
- VOLUME_LIMIT_MAX_REQUESTS: Requests per client per window (default: 25)
- VOLUME_LIMIT_WINDOW_MINUTES: Fixed window length (default: 10)

Environment Variables (Feed):
- REPORTS_LOOKBACK_HOURS: Feed lookback window (default: 6)
- REPORTS_FEED_MAX_ROWS: Feed row cap (default: 5000)
- REPORTS_CACHE_S_MAXAGE: Shared cache max age in seconds (default: 15)
- REPORTS_CACHE_SWR: stale-while-revalidate in seconds (default: 30)

Environment Variables (Retention):
- REPORTS_RETENTION_DAYS: Retention window, 1-365 (default: 30)
- CRON_SECRET: Bearer token for the prune job (preferred)
- REPORTS_PRUNE_TOKEN: Bearer token for the prune job (fallback)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from beachradar.config._env import (
    get_bool_env,
    get_env,
    get_float_env,
    get_int_env,
)
from beachradar.domain.models.report import (
    MAX_LOCATION_ID_LENGTH,
    MAX_REPORTER_HASH_LENGTH,
)


@dataclass(frozen=True)
class ReportIngestionConfig:
    """Configuration for the report ingestion gate.

    Attributes:
        rate_limit_minutes: Cooldown per (location, reporter) pair.
        max_body_bytes: Request bodies above this size are rejected unparsed.
        store_timeout_seconds: Deadline for each store call.
        max_location_id_length: Upper bound for location ids.
        max_reporter_hash_length: Upper bound for reporter hashes.
        max_user_agent_length: Stored user agents are truncated to this.
    """

    rate_limit_minutes: int = 10
    max_body_bytes: int = 8 * 1024
    store_timeout_seconds: float = 3.0
    max_location_id_length: int = MAX_LOCATION_ID_LENGTH
    max_reporter_hash_length: int = MAX_REPORTER_HASH_LENGTH
    max_user_agent_length: int = 256

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.rate_limit_minutes < 1:
            raise ValueError(
                f"rate_limit_minutes must be positive, got {self.rate_limit_minutes}"
            )
        if self.max_body_bytes < 256:
            raise ValueError(
                f"max_body_bytes must be at least 256, got {self.max_body_bytes}"
            )
        if self.store_timeout_seconds <= 0:
            raise ValueError(
                "store_timeout_seconds must be positive, "
                f"got {self.store_timeout_seconds}"
            )
        if not 1 <= self.max_location_id_length <= MAX_LOCATION_ID_LENGTH:
            raise ValueError(
                f"max_location_id_length must be within 1-{MAX_LOCATION_ID_LENGTH}"
            )
        if not 1 <= self.max_reporter_hash_length <= MAX_REPORTER_HASH_LENGTH:
            raise ValueError(
                f"max_reporter_hash_length must be within 1-{MAX_REPORTER_HASH_LENGTH}"
            )
        if self.max_user_agent_length < 1:
            raise ValueError(
                "max_user_agent_length must be positive, "
                f"got {self.max_user_agent_length}"
            )

    @property
    def cooldown_seconds(self) -> int:
        """Cooldown length in seconds."""
        return self.rate_limit_minutes * 60

    @classmethod
    def from_environment(cls) -> ReportIngestionConfig:
        """Create config from environment variables with defaults."""
        return cls(
            rate_limit_minutes=get_int_env("REPORT_RATE_LIMIT_MINUTES", 10, minimum=1),
            max_body_bytes=get_int_env("REPORT_MAX_BODY_BYTES", 8 * 1024, minimum=256),
            store_timeout_seconds=get_float_env("REPORT_STORE_TIMEOUT_SECONDS", 3.0),
            max_user_agent_length=get_int_env(
                "REPORT_MAX_USER_AGENT_LENGTH", 256, minimum=1
            ),
        )


@dataclass(frozen=True)
class VolumeLimitConfig:
    """Configuration for the anonymous fixed-window volume limiter.

    Attributes:
        enabled: Whether the limiter runs at all.
        max_requests: Requests allowed per client per window.
        window_minutes: Window length.
        trusted_proxy_hops: Reverse proxies in front of the API that append to
            X-Forwarded-For. The client address is the entry the outermost
            of them appended; 0 ignores the header and uses the peer address.
    """

    enabled: bool = True
    max_requests: int = 25
    window_minutes: int = 10
    trusted_proxy_hops: int = 1

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_requests < 1:
            raise ValueError(
                f"max_requests must be positive, got {self.max_requests}"
            )
        if self.window_minutes < 1:
            raise ValueError(
                f"window_minutes must be positive, got {self.window_minutes}"
            )
        if self.trusted_proxy_hops < 0:
            raise ValueError(
                f"trusted_proxy_hops must be non-negative, got {self.trusted_proxy_hops}"
            )

    @property
    def window_seconds(self) -> int:
        """Window length in seconds."""
        return self.window_minutes * 60

    @classmethod
    def from_environment(cls) -> VolumeLimitConfig:
        """Create config from environment variables with defaults."""
        return cls(
            enabled=get_bool_env("VOLUME_LIMIT_ENABLED", True),
            max_requests=get_int_env("VOLUME_LIMIT_MAX_REQUESTS", 25, minimum=1),
            window_minutes=get_int_env("VOLUME_LIMIT_WINDOW_MINUTES", 10, minimum=1),
            trusted_proxy_hops=get_int_env(
                "TRUSTED_PROXY_HOPS", 1, minimum=0, maximum=10
            ),
        )


@dataclass(frozen=True)
class FeedConfig:
    """Configuration for the recent-reports feed.

    Attributes:
        lookback_hours: Only reports newer than this are served.
        max_rows: Row cap per feed read.
        shared_max_age_seconds: s-maxage for shared caches.
        stale_while_revalidate_seconds: stale-while-revalidate window.
    """

    lookback_hours: int = 6
    max_rows: int = 5000
    shared_max_age_seconds: int = 15
    stale_while_revalidate_seconds: int = 30

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.lookback_hours < 1:
            raise ValueError(
                f"lookback_hours must be positive, got {self.lookback_hours}"
            )
        if self.max_rows < 1:
            raise ValueError(f"max_rows must be positive, got {self.max_rows}")
        if self.shared_max_age_seconds < 0 or self.stale_while_revalidate_seconds < 0:
            raise ValueError("cache durations must be non-negative")

    def cache_control_header(self) -> str:
        """Cache-Control value for feed and consensus responses."""
        return (
            f"public, max-age=0, s-maxage={self.shared_max_age_seconds}, "
            f"stale-while-revalidate={self.stale_while_revalidate_seconds}"
        )

    @classmethod
    def from_environment(cls) -> FeedConfig:
        """Create config from environment variables with defaults."""
        return cls(
            lookback_hours=get_int_env("REPORTS_LOOKBACK_HOURS", 6, minimum=1),
            max_rows=get_int_env("REPORTS_FEED_MAX_ROWS", 5000, minimum=1),
            shared_max_age_seconds=get_int_env("REPORTS_CACHE_S_MAXAGE", 15, minimum=0),
            stale_while_revalidate_seconds=get_int_env(
                "REPORTS_CACHE_SWR", 30, minimum=0
            ),
        )


DEFAULT_RETENTION_DAYS = 30
MIN_RETENTION_DAYS = 1
MAX_RETENTION_DAYS = 365


@dataclass(frozen=True)
class RetentionConfig:
    """Configuration for the report retention job.

    Attributes:
        retention_days: Reports older than this are pruned.
        prune_token: Bearer token that authorizes the job, None disables it.
    """

    retention_days: int = DEFAULT_RETENTION_DAYS
    prune_token: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not MIN_RETENTION_DAYS <= self.retention_days <= MAX_RETENTION_DAYS:
            raise ValueError(
                f"retention_days must be within {MIN_RETENTION_DAYS}-"
                f"{MAX_RETENTION_DAYS}, got {self.retention_days}"
            )

    @classmethod
    def from_environment(cls) -> RetentionConfig:
        """Create config from environment variables with defaults.

        CRON_SECRET takes precedence over REPORTS_PRUNE_TOKEN.
        """
        return cls(
            retention_days=get_int_env(
                "REPORTS_RETENTION_DAYS",
                DEFAULT_RETENTION_DAYS,
                minimum=MIN_RETENTION_DAYS,
                maximum=MAX_RETENTION_DAYS,
            ),
            prune_token=get_env("CRON_SECRET") or get_env("REPORTS_PRUNE_TOKEN"),
        )


# Pre-defined configurations

DEFAULT_REPORT_INGESTION_CONFIG = ReportIngestionConfig()
DEFAULT_VOLUME_LIMIT_CONFIG = VolumeLimitConfig()
DEFAULT_FEED_CONFIG = FeedConfig()

# Testing config with a short store deadline
TEST_REPORT_INGESTION_CONFIG = ReportIngestionConfig(
    rate_limit_minutes=10,
    store_timeout_seconds=0.2,
)

# Testing config with a tiny window budget
TEST_VOLUME_LIMIT_CONFIG = VolumeLimitConfig(
    max_requests=3,
    window_minutes=1,
)
