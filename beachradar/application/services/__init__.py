"""Application services for Beach Radar."""

from beachradar.application.services.report_feed_service import ReportFeedService
from beachradar.application.services.report_ingestion_service import (
    ReportIngestionService,
)
from beachradar.application.services.report_retention_service import (
    PruneResult,
    ReportRetentionService,
)
from beachradar.application.services.volume_limit_service import (
    ClientContext,
    VolumeLimitService,
)

__all__: list[str] = [
    "ClientContext",
    "PruneResult",
    "ReportFeedService",
    "ReportIngestionService",
    "ReportRetentionService",
    "VolumeLimitService",
]
