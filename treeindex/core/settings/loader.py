"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Testing:
    In tests, clear the caches to force a reload:
    clear_all_caches()

    Or build settings directly with overrides:
    settings = TreeIndexSettings(encoding="dyadic")
"""

from __future__ import annotations

from functools import lru_cache

from .database import DatabaseSettings
from .logs import LoggingSettings
from .tree import TreeIndexSettings


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    """Get cached database settings.

    Returns:
        Validated and frozen DatabaseSettings instance.
    """
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_tree_settings() -> TreeIndexSettings:
    """Get cached tree index settings.

    Returns:
        Validated and frozen TreeIndexSettings instance.
    """
    return TreeIndexSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every cached settings instance."""
    get_db_settings.cache_clear()
    get_tree_settings.cache_clear()
    get_logging_settings.cache_clear()
