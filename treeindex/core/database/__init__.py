"""Core database package: declarative base, record store and tree index.

Base Classes and Mixins:
    - Base: Declarative base with constraint naming and auto table names
    - IntegerPKMixin: Store-assigned integer primary key
    - ClassicNodeMixin, DyadicNodeMixin: nested-set columns per encoding

Store:
    - NodeStore[T]: record persistence and predicate queries with explicit
      session passing, plus a unit-of-work transaction scope

Hierarchy:
    - TreeIndex[T]: nested-set tree operations over a NodeStore
    - ClassicEncoding, DyadicEncoding: interval encodings

Exceptions:
    - RepositoryError: Base exception for store operations
    - NotFoundError: Entity not found
    - AlreadyAttachedToTree, NodeNotInTree, NodeNotChildOfParent,
      IntervalPrecisionExhausted: tree precondition violations

Example:
    from treeindex.core.database import Base, IntegerPKMixin
    from treeindex.core.database.hierarchy import DyadicNodeMixin

    class Folder(Base, IntegerPKMixin, DyadicNodeMixin):
        __tablename__ = "folders"
        name: Mapped[str] = mapped_column(String(255))
"""

from treeindex.core.database.base import NAMING_CONVENTION, Base, IntegerPKMixin
from treeindex.core.database.exceptions import (
    AlreadyAttachedToTree,
    IntervalPrecisionExhausted,
    NodeNotChildOfParent,
    NodeNotInTree,
    NotFoundError,
    RepositoryError,
    TreeError,
)
from treeindex.core.database.repository import NodeStore

__all__ = [
    "NAMING_CONVENTION",
    "AlreadyAttachedToTree",
    "Base",
    "IntegerPKMixin",
    "IntervalPrecisionExhausted",
    "NodeNotChildOfParent",
    "NodeNotInTree",
    "NodeStore",
    "NotFoundError",
    "RepositoryError",
    "TreeError",
]
