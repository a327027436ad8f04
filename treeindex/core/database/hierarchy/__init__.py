"""Hierarchical data support using nested sets.

Every node of a tree stores an interval ``(lft, rgt)``; a node's interval
nests inside its parent's, so ancestors, descendants, children and roots
are each one range query away. Two interval encodings are available:

    - ClassicEncoding: dense integer bounds. Insertion and removal shift
      every bound to the right of the change.
    - DyadicEncoding: exact fractions. Insertion is a single-row append and
      removal never shifts survivors, at the cost of growing denominators.

Components:
    - ClassicNodeMixin / DyadicNodeMixin: node columns for a model
    - TreeIndex: tree operations, generic over the encoding
    - TreeLockRegistry: per-tree serialization of mutations
    - render_tree: text drawing of a stored tree

Example:
    >>> from treeindex.core.database import Base, IntegerPKMixin
    >>> from treeindex.core.database.hierarchy import ClassicNodeMixin, TreeIndex, get_encoding
    >>>
    >>> class Category(Base, IntegerPKMixin, ClassicNodeMixin):
    ...     __tablename__ = "categories"
    ...     name: Mapped[str] = mapped_column(String(255))
    >>>
    >>> index = TreeIndex(Category, get_encoding("classic"))
    >>> root = index.create_node(name="electronics")
    >>> await index.start_tree(session, root)
    >>> await index.add_child(session, root, index.create_node(name="computers"))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from treeindex.core.database.hierarchy.classic import ClassicEncoding
from treeindex.core.database.hierarchy.dyadic import DyadicEncoding, mean
from treeindex.core.database.hierarchy.encoding import EncodingStrategy, Interval
from treeindex.core.database.hierarchy.index import TreeIndex
from treeindex.core.database.hierarchy.locks import TreeLockRegistry
from treeindex.core.database.hierarchy.mixins import (
    NO_TREE,
    ROOT_DEPTH,
    ClassicNodeMixin,
    DyadicNodeMixin,
    NestedSetMixin,
)
from treeindex.core.database.hierarchy.render import format_node, render_tree

if TYPE_CHECKING:
    from treeindex.core.settings import TreeIndexSettings


def get_encoding(name: str, settings: TreeIndexSettings | None = None) -> EncodingStrategy[Any]:
    """Build the encoding strategy called ``name``.

    Args:
        name: "classic" or "dyadic"
        settings: Tree settings supplying the dyadic precision limit
            (defaults to get_tree_settings())

    Raises:
        ValueError: If the name is unknown
    """
    if name == ClassicEncoding.name:
        return ClassicEncoding()
    if name == DyadicEncoding.name:
        if settings is None:
            from treeindex.core.settings import get_tree_settings

            settings = get_tree_settings()
        return DyadicEncoding(max_denominator_bits=settings.dyadic_max_denominator_bits)
    msg = f"Unknown interval encoding: {name!r} (expected 'classic' or 'dyadic')"
    raise ValueError(msg)


__all__ = [
    "NO_TREE",
    "ROOT_DEPTH",
    "ClassicEncoding",
    "ClassicNodeMixin",
    "DyadicEncoding",
    "DyadicNodeMixin",
    "EncodingStrategy",
    "Interval",
    "NestedSetMixin",
    "TreeIndex",
    "TreeLockRegistry",
    "format_node",
    "get_encoding",
    "mean",
    "render_tree",
]
