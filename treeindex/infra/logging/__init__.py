"""Logging infrastructure.

Basic usage:
    import logging

    from treeindex.infra.logging import get_lazy_logger, setup_logging

    setup_logging()  # reads LOG_* settings
    logger = logging.getLogger(__name__)
    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Expensive: {dump_tree()}")  # only runs if DEBUG enabled
"""

from treeindex.infra.logging.config import configure_logging, setup_logging
from treeindex.infra.logging.formatters import JSONFormatter
from treeindex.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "configure_logging",
    "get_lazy_logger",
    "setup_logging",
]
