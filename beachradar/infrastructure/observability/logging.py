"""structlog setup for the API process.

Renderer choice follows LOG_FORMAT when set ("json" or "console"), otherwise
the environment: JSON lines in production, coloured console output elsewhere.
LOG_LEVEL picks the threshold (default INFO). Every entry carries the request
correlation id when one is bound.
"""

import logging

import structlog
from structlog.typing import Processor

from beachradar.config._env import get_env
from beachradar.infrastructure.observability.correlation import (
    correlation_id_processor,
)

JSON_ENVIRONMENTS = frozenset({"production", "staging"})


def resolve_log_level(name: str | None) -> int:
    """Numeric level for a level name; unknown names mean INFO."""
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def use_json_output(environment: str) -> bool:
    """Whether to render JSON lines for this environment."""
    log_format = (get_env("LOG_FORMAT") or "").lower()
    if log_format in ("json", "console"):
        return log_format == "json"
    return environment.lower() in JSON_ENVIRONMENTS


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog globally. Called once by the app factory."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        correlation_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if use_json_output(environment):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            resolve_log_level(get_env("LOG_LEVEL"))
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
