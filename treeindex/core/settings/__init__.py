"""Pydantic Settings v2 configuration.

Settings are split by domain and read from environment variables:
    - DB_*   -> DatabaseSettings
    - TREE_* -> TreeIndexSettings
    - LOG_*  -> LoggingSettings

Import settings via the cached loaders:
    from treeindex.core.settings import get_tree_settings

    settings = get_tree_settings()
    print(settings.encoding)
"""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import (
    clear_all_caches,
    get_db_settings,
    get_logging_settings,
    get_tree_settings,
)
from .logs import LoggingSettings
from .tree import EncodingName, TreeIndexSettings

__all__ = [
    "DatabaseSettings",
    "EncodingName",
    "LoggingSettings",
    "TreeIndexSettings",
    "clear_all_caches",
    "get_db_settings",
    "get_logging_settings",
    "get_tree_settings",
]
