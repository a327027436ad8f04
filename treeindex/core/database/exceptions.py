"""Database repository and tree exceptions.

Tree errors are synchronous precondition violations: they are raised before
anything is written, so a failed call leaves the store untouched. They are
never transient and never retried.
"""
from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base exception for repository operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize repository error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class NotFoundError(RepositoryError):
    """Entity not found in database.

    Attributes:
        model_name: Name of the model class that wasn't found
        identifier: The key/value that was searched for
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        """Initialize not found error.

        Args:
            model_name: Name of the model (e.g., "Category")
            identifier: Key-value pairs used in the search (e.g., {"tree_id": 3})
        """
        self.model_name = model_name
        self.identifier = identifier

        id_str = ", ".join(f"{k}={v!r}" for k, v in identifier.items())
        message = f"{model_name} not found with {id_str}"

        super().__init__(message, details={"model": model_name, **identifier})

    def __repr__(self) -> str:
        return f"NotFoundError(model={self.model_name!r}, identifier={self.identifier!r})"


class TreeError(RepositoryError):
    """Base class for nested-set precondition violations."""


class AlreadyAttachedToTree(TreeError):
    """The node being attached already belongs to a tree.

    Raised by start_tree() and by add_child() for the child argument,
    including when the child already sits in the parent's own tree.

    Attributes:
        tree_id: The tree the node is already attached to
    """

    def __init__(self, node: Any, tree_id: int):
        self.node = node
        self.tree_id = tree_id
        super().__init__(
            f"Node already has treeId set to {tree_id}",
            details={"node_id": getattr(node, "id", None)},
        )


class NodeNotInTree(TreeError):
    """A node that must be attached is not, or two nodes live in different trees."""

    @classmethod
    def parent_unattached(cls, parent: Any) -> NodeNotInTree:
        return cls(
            f"Parent node not attached to any tree: {_describe(parent)}",
            details={"node_id": getattr(parent, "id", None)},
        )

    @classmethod
    def different_trees(cls, parent: Any, child: Any) -> NodeNotInTree:
        return cls(
            f"Nodes not in same tree - parent: {_describe(parent)}; child {_describe(child)}",
            details={
                "parent_tree_id": getattr(parent, "tree_id", None),
                "child_tree_id": getattr(child, "tree_id", None),
            },
        )


class NodeNotChildOfParent(TreeError):
    """The child's interval does not nest inside the parent's interval."""

    def __init__(self, parent: Any, child: Any):
        self.parent = parent
        self.child = child
        super().__init__(
            f"Node {_describe(child)} is not a child of {_describe(parent)}",
            details={
                "parent_id": getattr(parent, "id", None),
                "child_id": getattr(child, "id", None),
            },
        )


class IntervalPrecisionExhausted(TreeError):
    """A dyadic insertion would need a denominator wider than allowed.

    Attributes:
        bits: Bit length the new interval would need
        limit: Configured maximum (TREE_DYADIC_MAX_DENOMINATOR_BITS)
    """

    def __init__(self, bits: int, limit: int, parent: Any = None):
        self.bits = bits
        self.limit = limit
        super().__init__(
            "Dyadic interval precision exhausted",
            details={
                "bits": bits,
                "limit": limit,
                "parent_id": getattr(parent, "id", None),
            },
        )


def _describe(node: Any) -> str:
    if node is None:
        return "None"
    return (
        f"{type(node).__name__}(id={getattr(node, 'id', None)}, "
        f"tree_id={getattr(node, 'tree_id', None)}, "
        f"interval={getattr(node, 'interval', None)})"
    )


__all__ = [
    "AlreadyAttachedToTree",
    "IntervalPrecisionExhausted",
    "NodeNotChildOfParent",
    "NodeNotInTree",
    "NotFoundError",
    "RepositoryError",
    "TreeError",
]
