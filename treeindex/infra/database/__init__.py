"""Database infrastructure: engine and session factory."""

from treeindex.infra.database.session import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
    enable_sqlite_savepoints,
    get_async_session,
)

__all__ = [
    "create_engine_from_settings",
    "create_session_factory",
    "create_tables",
    "enable_sqlite_savepoints",
    "get_async_session",
]
