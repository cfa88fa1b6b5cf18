"""Configuration module for Beach Radar.

Available Configurations:
- ReportIngestionConfig: Ingestion gate cooldown, payload and deadline limits
- VolumeLimitConfig: Anonymous fixed-window volume limiter
- FeedConfig: Recent-reports feed window and caching
- RetentionConfig: Retention job window and token
- load_consensus_parameters: Consensus engine tuning
"""

from beachradar.config.consensus_config import load_consensus_parameters
from beachradar.config.report_config import (
    DEFAULT_FEED_CONFIG,
    DEFAULT_REPORT_INGESTION_CONFIG,
    DEFAULT_VOLUME_LIMIT_CONFIG,
    TEST_REPORT_INGESTION_CONFIG,
    TEST_VOLUME_LIMIT_CONFIG,
    FeedConfig,
    ReportIngestionConfig,
    RetentionConfig,
    VolumeLimitConfig,
)

__all__ = [
    "DEFAULT_FEED_CONFIG",
    "DEFAULT_REPORT_INGESTION_CONFIG",
    "DEFAULT_VOLUME_LIMIT_CONFIG",
    "FeedConfig",
    "ReportIngestionConfig",
    "RetentionConfig",
    "TEST_REPORT_INGESTION_CONFIG",
    "TEST_VOLUME_LIMIT_CONFIG",
    "VolumeLimitConfig",
    "load_consensus_parameters",
]
