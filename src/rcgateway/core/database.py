"""Async database engine and per-operation connection management.

This module provides the core database infrastructure:
- Async SQLAlchemy engine (no pooling by default, one connection per operation)
- ConnectionProvider, which hands out connections and reports an outage as
  ``None`` instead of raising, so the cache store can degrade gracefully
- Database lifecycle management (create/dispose) and a health check

Usage:
    from rcgateway.core.database import ConnectionProvider, create_engine

    engine = create_engine(settings)
    provider = ConnectionProvider(engine, connect_timeout=5.0)

    async with provider.acquire() as conn:
        if conn is None:
            ...  # store unavailable
        else:
            await conn.execute(...)

    await engine.dispose()
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from rcgateway.config import Settings
from rcgateway.core.logging import get_logger

logger = get_logger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Without ``database_pooling`` the engine uses ``NullPool``: every
    ``connect()`` opens a fresh connection and closing it really closes it.

    Args:
        settings: Application settings containing database configuration

    Returns:
        AsyncEngine: Engine bound to ``settings.database_url``
    """
    logger.info(
        "Initializing database engine",
        database_url=_mask_password(settings.database_url),
        pooling=settings.database_pooling,
    )

    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug,
    }

    is_sqlite = settings.database_url.startswith("sqlite")

    if settings.database_pooling and not is_sqlite:
        engine_kwargs["pool_size"] = settings.database_pool_min
        engine_kwargs["max_overflow"] = (
            settings.database_pool_max - settings.database_pool_min
        )
        engine_kwargs["pool_pre_ping"] = True
    else:
        engine_kwargs["poolclass"] = NullPool

    return create_async_engine(settings.database_url, **engine_kwargs)


class ConnectionProvider:
    """Acquire/use/release access to the durable store.

    ``acquire()`` yields an open ``AsyncConnection`` or ``None`` when the
    store cannot be reached within ``connect_timeout`` seconds. The
    connection is closed when the context exits, on success and on error.
    """

    def __init__(self, engine: AsyncEngine, *, connect_timeout: float = 5.0) -> None:
        """Initialize the provider.

        Args:
            engine: Async engine to draw connections from
            connect_timeout: Seconds to wait for a connection
        """
        self.engine = engine
        self.connect_timeout = connect_timeout

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection | None]:
        """Yield a connection, or ``None`` if the store is unavailable."""
        conn: AsyncConnection | None = None
        try:
            conn = await asyncio.wait_for(
                self.engine.connect().start(), timeout=self.connect_timeout
            )
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            logger.warning(
                "rc_store_unavailable",
                error_type=type(e).__name__,
                error=str(e),
            )

        if conn is None:
            yield None
            return

        try:
            yield conn
        finally:
            await conn.close()


async def check_db_connection(engine: AsyncEngine) -> bool:
    """Check if the database connection is working.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


def _mask_password(url: str) -> str:
    """Mask password in database URL for logging.

    Args:
        url: Database URL

    Returns:
        URL with password masked
    """
    if "://" in url and "@" in url:
        prefix = url.split("://")[0] + "://"
        rest = url.split("://")[1]
        if "@" in rest:
            creds, host = rest.split("@", 1)
            if ":" in creds:
                user = creds.split(":")[0]
                return f"{prefix}{user}:****@{host}"
    return url
