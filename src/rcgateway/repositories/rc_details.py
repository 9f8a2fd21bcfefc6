"""Durable RC record store backed by the relational database.

Each operation acquires its own connection from the ConnectionProvider,
runs, and releases it. When the provider reports the database unavailable,
or a driver error escapes an operation, the same operation is served by the
injected fallback store instead. Callers cannot tell which store answered.

Upserts are single statements keyed on the unique ``rc_number`` column:
``INSERT ... ON CONFLICT DO UPDATE`` on PostgreSQL and SQLite,
``INSERT ... ON DUPLICATE KEY UPDATE`` on MySQL, and delete-then-insert in
one transaction elsewhere.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog
from sqlalchemy import Table, delete, func, insert, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from rcgateway.core.database import ConnectionProvider
from rcgateway.models.rc_details import DEFAULT_TABLE_NAME, rc_details_table
from rcgateway.repositories.base import CacheStats, RecordStore
from rcgateway.services.normalizer import RECORD_COLUMNS, RCRecord

logger = structlog.get_logger(__name__)

R = TypeVar("R")


class RCDetailsRepository(RecordStore):
    """RecordStore over the ``rc_details`` table with in-memory fallback.

    Attributes:
        provider: Source of per-operation connections
        fallback: Store used while the database is unreachable
        table: The RC details table under its configured name
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        fallback: RecordStore,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
    ) -> None:
        """Initialize the repository.

        Args:
            provider: Connection provider for the durable store
            fallback: Store serving operations during an outage
            table_name: Configured table name
        """
        self.provider = provider
        self.fallback = fallback
        self.table: Table = rc_details_table(table_name)

    # -------------------------------------------------------------------------
    # RecordStore
    # -------------------------------------------------------------------------

    async def lookup(self, key: str) -> RCRecord | None:
        async def durable(conn: AsyncConnection) -> RCRecord | None:
            result = await conn.execute(
                select(self.table).where(self.table.c.rc_number == key)
            )
            row = result.mappings().first()
            return RCRecord.from_row(row) if row is not None else None

        return await self._run(
            "lookup", key, durable, lambda: self.fallback.lookup(key)
        )

    async def upsert(self, key: str, record: RCRecord) -> None:
        async def durable(conn: AsyncConnection) -> None:
            values = record.to_row()
            values["rc_number"] = key
            dialect = conn.dialect.name
            if dialect in ("postgresql", "sqlite", "mysql"):
                await conn.execute(self._upsert_statement(dialect, values))
            else:
                await conn.execute(
                    delete(self.table).where(self.table.c.rc_number == key)
                )
                await conn.execute(insert(self.table).values(**values))
            await conn.commit()
            logger.debug("rc_store_upsert", rc_number=key, dialect=dialect)

        await self._run(
            "upsert", key, durable, lambda: self.fallback.upsert(key, record)
        )

    async def exists(self, key: str) -> bool:
        async def durable(conn: AsyncConnection) -> bool:
            result = await conn.execute(
                select(self.table.c.id).where(self.table.c.rc_number == key).limit(1)
            )
            return result.first() is not None

        return await self._run(
            "exists", key, durable, lambda: self.fallback.exists(key)
        )

    async def delete(self, key: str) -> None:
        async def durable(conn: AsyncConnection) -> None:
            await conn.execute(
                delete(self.table).where(self.table.c.rc_number == key)
            )
            await conn.commit()

        await self._run(
            "delete", key, durable, lambda: self.fallback.delete(key)
        )

    async def stats(self) -> CacheStats:
        async def durable(conn: AsyncConnection) -> CacheStats:
            result = await conn.execute(
                select(func.count(), func.max(self.table.c.updated_at)).select_from(
                    self.table
                )
            )
            total, last_updated = result.one()
            return CacheStats(total_records=total, last_updated=last_updated)

        return await self._run("stats", None, durable, self.fallback.stats)

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    async def create_schema(self) -> None:
        """Create the RC details table if it does not exist.

        Production schemas are managed by Alembic; this is for local
        SQLite databases and tests.
        """
        async with self.provider.engine.begin() as conn:
            await conn.run_sync(self.table.create, checkfirst=True)
        logger.info("rc_store_schema_ready", table=self.table.name)

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        key: str | None,
        durable: Callable[[AsyncConnection], Awaitable[R]],
        fallback: Callable[[], Awaitable[R]],
    ) -> R:
        """Run an operation against the database, degrading to the fallback.

        The connection is released before the fallback runs.
        """
        async with self.provider.acquire() as conn:
            if conn is not None:
                try:
                    return await durable(conn)
                except SQLAlchemyError as e:
                    logger.warning(
                        "rc_store_operation_failed",
                        operation=operation,
                        rc_number=key,
                        error_type=type(e).__name__,
                        error=str(e),
                    )

        logger.info("rc_store_degraded", operation=operation, rc_number=key)
        return await fallback()

    def _upsert_statement(self, dialect: str, values: dict[str, Any]) -> Any:
        """Build a single-statement upsert keyed on ``rc_number``."""
        updated = [name for name in RECORD_COLUMNS if name != "rc_number"]

        if dialect == "mysql":
            stmt = mysql_insert(self.table).values(**values)
            set_ = {name: stmt.inserted[name] for name in updated}
            set_["updated_at"] = func.now()
            return stmt.on_duplicate_key_update(set_)

        insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = insert_fn(self.table).values(**values)
        set_ = {name: stmt.excluded[name] for name in updated}
        set_["updated_at"] = func.now()
        return stmt.on_conflict_do_update(
            index_elements=[self.table.c.rc_number],
            set_=set_,
        )
