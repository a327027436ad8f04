"""Async engine and session factory built from DatabaseSettings.

The tree index never opens sessions itself; this is a convenience for
applications and scripts that do not already manage an engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy import MetaData
    from sqlalchemy.ext.asyncio import AsyncEngine

    from treeindex.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)


def create_engine_from_settings(db_settings: DatabaseSettings | None = None) -> AsyncEngine:
    """Create an async engine from DB_* settings.

    Args:
        db_settings: Settings instance (defaults to get_db_settings())
    """
    if db_settings is None:
        from treeindex.core.settings import get_db_settings

        db_settings = get_db_settings()

    engine = create_async_engine(db_settings.url, echo=db_settings.echo)
    if db_settings.is_sqlite:
        enable_sqlite_savepoints(engine)
    logger.info(
        "Database engine created",
        extra={"dialect": engine.dialect.name, "row_locks": not db_settings.is_sqlite},
    )
    return engine


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself on a SQLite engine.

    The sqlite3 driver opens transactions lazily and never around a
    SAVEPOINT, so a released SAVEPOINT would commit the caller's work.
    Taking BEGIN over from the driver makes nested units of work (used by
    NodeStore.unit_of_work inside a caller's transaction) behave as on
    other databases.

    Args:
        engine: Async engine on a sqlite+aiosqlite URL
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_session_factory(
    engine: AsyncEngine,
    db_settings: DatabaseSettings | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``.

    Args:
        engine: Async engine
        db_settings: Settings instance (defaults to get_db_settings())
    """
    if db_settings is None:
        from treeindex.core.settings import get_db_settings

        db_settings = get_db_settings()

    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=db_settings.expire_on_commit,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine, metadata: MetaData) -> None:
    """Create every table of ``metadata`` that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Tables ensured", extra={"tables": sorted(metadata.tables)})


@asynccontextmanager
async def get_async_session(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Open a session that is closed on exit.

    Example:
        async with get_async_session(factory) as session:
            root = await index.find_tree_root(session, tree_id)
    """
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


__all__ = [
    "create_engine_from_settings",
    "create_session_factory",
    "create_tables",
    "enable_sqlite_savepoints",
    "get_async_session",
]
