"""
API routes for Beach Radar.

Available routers:
- reports: submission, feed and retention
- consensus: per-location crowd consensus
- health: health check
- metrics: Prometheus scrape endpoint
"""

from beachradar.api.routes.consensus import router as consensus_router
from beachradar.api.routes.health import router as health_router
from beachradar.api.routes.metrics import router as metrics_router
from beachradar.api.routes.reports import router as reports_router

__all__: list[str] = [
    "consensus_router",
    "health_router",
    "metrics_router",
    "reports_router",
]
