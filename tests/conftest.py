"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: isolated TREE_/DB_/LOG_ environment
    - Database Fixtures: SQLAlchemy engine and session on in-memory SQLite

Tree models and index fixtures live in tests/unit/test_core/test_database/conftest.py.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so monkeypatched env vars are picked up."""
    from treeindex.core.settings import clear_all_caches

    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Every test gets a fresh, empty database. SAVEPOINTs work as on other
    databases, so units of work nested in a test's transaction roll back alone.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    from treeindex.infra.database import enable_sqlite_savepoints

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_savepoints(engine)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session with automatic table creation and cleanup.

    Tables are created from Base.metadata, so every model declared in a
    conftest (or test module) imported before this fixture runs gets a table.

    Args:
        db_engine: Async SQLAlchemy engine fixture.

    Yields:
        Async database session for testing.
    """
    from treeindex.core.database import Base

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
