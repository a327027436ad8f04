"""Nested-set indexing of hierarchical data in a flat SQLAlchemy table.

Example:
    from treeindex import build_tree_index

    index = build_tree_index(Category)  # encoding from TREE_ENCODING
    root = index.create_node(name="electronics")
    tree_id = await index.start_tree(session, root)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from treeindex.core.database.exceptions import (
    AlreadyAttachedToTree,
    IntervalPrecisionExhausted,
    NodeNotChildOfParent,
    NodeNotInTree,
    NotFoundError,
    TreeError,
)
from treeindex.core.database.hierarchy import TreeIndex, TreeLockRegistry, get_encoding

if TYPE_CHECKING:
    from treeindex.core.settings import TreeIndexSettings

__version__ = "0.1.0"


def build_tree_index[T](
    model: type[T],
    *,
    settings: TreeIndexSettings | None = None,
    locks: TreeLockRegistry | None = None,
) -> TreeIndex[Any]:
    """Build a TreeIndex using the encoding named in the tree settings.

    Args:
        model: Mapped model declared with the matching node mixin
        settings: Tree settings (defaults to get_tree_settings())
        locks: Shared lock registry

    Raises:
        TypeError: If the model's node mixin does not match the encoding
    """
    if settings is None:
        from treeindex.core.settings import get_tree_settings

        settings = get_tree_settings()
    encoding = get_encoding(settings.encoding, settings)
    return TreeIndex(model, encoding, settings=settings, locks=locks)


__all__ = [
    "AlreadyAttachedToTree",
    "IntervalPrecisionExhausted",
    "NodeNotChildOfParent",
    "NodeNotInTree",
    "NotFoundError",
    "TreeError",
    "TreeIndex",
    "__version__",
    "build_tree_index",
]
