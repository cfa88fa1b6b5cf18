"""PostgreSQL engine and session factory for the report store and limiter.

Environment Variables:
- DATABASE_URL: postgres:// or postgresql:// connection string. When unset the
  API falls back to the in-memory store and limiter.
- DATABASE_POOL_SIZE: Connections kept open per process (default 5).
- DATABASE_POOL_TIMEOUT_SECONDS: Wait for a free connection (default 3.0).
- SQLALCHEMY_ECHO: Log every statement when true.

The engine is created lazily on first use and disposed by the app lifespan.
"""

from __future__ import annotations

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

from beachradar.config._env import get_bool_env, get_env, get_float_env, get_int_env

ASYNC_DRIVER = "postgresql+asyncpg"
_SYNC_DRIVERS = ("postgres", "postgresql", "postgresql+psycopg2", "postgresql+psycopg")

logger = get_logger().bind(component="database_bootstrap")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def is_database_configured() -> bool:
    """Whether DATABASE_URL is set."""
    return get_env("DATABASE_URL") is not None


def get_database_url() -> URL:
    """DATABASE_URL rewritten for the asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL is unset, unparsable, or not PostgreSQL.
    """
    raw = get_env("DATABASE_URL")
    if raw is None:
        raise ValueError("DATABASE_URL environment variable not set")
    try:
        url = make_url(raw)
    except ArgumentError as e:
        raise ValueError(f"DATABASE_URL is not a valid connection URL: {e}") from None

    if url.drivername in _SYNC_DRIVERS:
        url = url.set(drivername=ASYNC_DRIVER)
    if url.drivername != ASYNC_DRIVER:
        raise ValueError(f"Unsupported database driver: {url.drivername}")
    return url


def mask_database_url(url: URL) -> str:
    """Connection URL with the password hidden, for logs."""
    return url.render_as_string(hide_password=True)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine, created on first call.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    global _engine, _session_factory

    if _session_factory is None:
        url = get_database_url()
        _engine = create_async_engine(
            url,
            echo=get_bool_env("SQLALCHEMY_ECHO", False),
            pool_pre_ping=True,
            pool_size=get_int_env("DATABASE_POOL_SIZE", 5, minimum=1, maximum=100),
            pool_timeout=get_float_env("DATABASE_POOL_TIMEOUT_SECONDS", 3.0),
        )
        _session_factory = async_sessionmaker(bind=_engine, expire_on_commit=False)
        logger.info("database_engine_created", url=mask_database_url(url))

    return _session_factory


def reset_database_bootstrap() -> None:
    """Forget the engine without disposing it (tests)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def close_database_engine() -> None:
    """Dispose the engine's connection pool on shutdown."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
        logger.info("database_engine_disposed")
