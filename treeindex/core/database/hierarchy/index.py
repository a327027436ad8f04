"""Nested-set tree index over a flat SQLAlchemy table.

``TreeIndex`` answers tree questions (children, ancestors, parent, root,
subtree) with a single range query each, and keeps the intervals consistent
on insertion and removal. Interval maths is delegated to an
``EncodingStrategy``; this module owns preconditions, locking and the store
calls, identically for every encoding.

Example:
    >>> index = TreeIndex(Category, ClassicEncoding())
    >>> root = index.create_node(name="electronics")
    >>> tree_id = await index.start_tree(session, root)
    >>> laptops = await index.add_child(session, root, index.create_node(name="laptops"))
    >>> [c.name for c in await index.find_children(session, root)]
    ['laptops']

Every mutation runs under the tree's lock and in one unit of work: either
every touched record is written or none is. All precondition checks run
before the first write.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NoReturn

from treeindex.core.database.exceptions import (
    AlreadyAttachedToTree,
    NodeNotChildOfParent,
    NodeNotInTree,
    NotFoundError,
)
from treeindex.core.database.hierarchy.locks import TreeLockRegistry
from treeindex.core.database.hierarchy.mixins import NO_TREE, ROOT_DEPTH, NestedSetMixin
from treeindex.core.database.repository import NodeStore
from treeindex.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from treeindex.core.database.hierarchy.encoding import EncodingStrategy
    from treeindex.core.settings import TreeIndexSettings

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


class TreeIndex[T: NestedSetMixin]:
    """Generic nested-set index parameterized by an interval encoding.

    Provides:
        - create_node(**payload) -> T
        - start_tree(session, node) -> tree_id
        - add_child(session, parent, child) -> T
        - remove_child(session, parent, child) -> list[T]
        - find_children / find_ancestors / find_parent / find_subtree
        - find_tree_root(session, tree_id) -> T
        - find_rightmost_child / find_youngest_child(session, parent) -> T | None

    Session is always explicit. Instances handed in are the instances
    updated: after ``add_child`` the parent (and every shifted record the
    session holds) carries its new interval. With a session that expires on
    commit, refresh held instances before passing them to the next call.
    """

    def __init__(
        self,
        model: type[T],
        encoding: EncodingStrategy[Any],
        *,
        settings: TreeIndexSettings | None = None,
        locks: TreeLockRegistry | None = None,
    ) -> None:
        """Initialize the index.

        Args:
            model: Mapped model declared with the node mixin of ``encoding``
            encoding: Interval encoding strategy
            settings: Tree settings (defaults to get_tree_settings())
            locks: Lock registry; share one between indexes over the same table

        Raises:
            TypeError: If ``model`` carries another encoding's columns
        """
        encoding.check_model(model)
        if settings is None:
            from treeindex.core.settings import get_tree_settings

            settings = get_tree_settings()

        self.model = model
        self.encoding = encoding
        self.settings = settings
        self.store: NodeStore[T] = NodeStore(model)
        self.locks = locks if locks is not None else TreeLockRegistry()

    def __repr__(self) -> str:
        return f"TreeIndex(model={self.model.__name__}, encoding={self.encoding!r})"

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_node(self, **payload: Any) -> T:
        """Build an unattached node with a placeholder interval.

        The node is not persisted; start_tree() or add_child() does that.

        Args:
            **payload: Caller columns of the model (e.g. ``name="laptops"``)
        """
        node = self.model(**payload)
        node.tree_id = NO_TREE
        node.depth = ROOT_DEPTH
        self.encoding.write_interval(node, self.encoding.root_interval())
        return node

    async def start_tree(self, session: AsyncSession, node: T) -> int:
        """Make ``node`` the root of a new tree.

        The new tree id is the root's store-assigned id, which no other tree
        can hold.

        Args:
            session: Database session
            node: Unattached node

        Returns:
            The new tree id

        Raises:
            AlreadyAttachedToTree: If the node already belongs to a tree
        """
        if node.has_tree:
            self._reject("start_tree", AlreadyAttachedToTree(node, node.tree_id))

        async with self.store.unit_of_work(session):
            node.tree_id = NO_TREE
            node.depth = ROOT_DEPTH
            self.encoding.write_interval(node, self.encoding.root_interval())
            node_id = await self.store.insert(session, node)
            node.tree_id = node_id
            await self.store.update(session, node)

        # node may be expired by the commit; log and return the captured id
        logger.info(
            "Tree started",
            extra={"tree_id": node_id, "node_id": node_id, "encoding": self.encoding.name},
        )
        return node_id

    async def add_child(self, session: AsyncSession, parent: T, child: T) -> T:
        """Attach ``child`` as the new last (youngest) child of ``parent``.

        Args:
            session: Database session
            parent: Attached node
            child: Unattached node

        Returns:
            The attached child

        Raises:
            NodeNotInTree: If the parent is not attached to a tree
            AlreadyAttachedToTree: If the child is attached to any tree
            IntervalPrecisionExhausted: If a dyadic interval would exceed the
                configured denominator width
        """
        if not parent.has_tree:
            self._reject("add_child", NodeNotInTree.parent_unattached(parent))
        if child.has_tree:
            self._reject("add_child", AlreadyAttachedToTree(child, child.tree_id))

        tree_id = parent.tree_id
        async with self.locks.lock(tree_id), self.store.unit_of_work(session):
            await self._lock_tree_row(session, tree_id)
            parent = await self._reload(session, parent)

            anchor = await self.find_rightmost_child(session, parent)
            interval = self.encoding.child_interval(parent, anchor)

            shifted: list[T] = []
            room = self.encoding.room_predicate(self.model, parent)
            if room is not None:
                shifted = await self.store.find_all(session, room)
                self.encoding.make_room(shifted, parent)
                await self.store.update_many(session, shifted)

            child.tree_id = tree_id
            child.depth = parent.depth + 1
            self.encoding.write_interval(child, interval)
            child_id = await self.store.insert(session, child)
            parent_id = parent.id
            parent_interval = self.encoding.read_interval(parent)

        logger.info(
            "Child added",
            extra={
                "tree_id": tree_id,
                "node_id": child_id,
                "parent_id": parent_id,
                "shifted": len(shifted),
            },
        )
        _lazy.debug(lambda: f"add_child: {child_id} -> {interval} under {parent_interval}")
        return child

    async def remove_child(self, session: AsyncSession, parent: T, child: T) -> list[T]:
        """Delete ``child`` and its whole subtree.

        ``child`` may be any proper descendant of ``parent``; the check is
        interval containment, not direct parenthood.

        Args:
            session: Database session
            parent: Attached node
            child: Node nested inside ``parent``

        Returns:
            The deleted records in pre-order (``child`` first)

        Raises:
            NodeNotInTree: If the parent is unattached or the nodes are in
                different trees
            NodeNotChildOfParent: If ``child`` does not nest inside ``parent``
        """
        self._check_removal(parent, child)

        tree_id = parent.tree_id
        async with self.locks.lock(tree_id), self.store.unit_of_work(session):
            await self._lock_tree_row(session, tree_id)
            parent = await self._reload(session, parent)
            child = await self._reload(session, child)
            # Stored intervals may differ from what the caller held
            self._check_removal(parent, child)
            parent_id, child_id = parent.id, child.id

            removed_interval = self.encoding.read_interval(child)
            removed = await self.store.delete_many(
                session,
                self.encoding.subtree_of(self.model, child),
                order_by=self.encoding.order_by_lft(self.model),
            )

            shifted: list[T] = []
            closing = self.encoding.removal_predicate(self.model, tree_id, removed_interval)
            if closing is not None:
                shifted = await self.store.find_all(session, closing)
                self.encoding.after_removal(shifted, removed_interval)
                await self.store.update_many(session, shifted)

        logger.info(
            "Subtree removed",
            extra={
                "tree_id": tree_id,
                "node_id": child_id,
                "parent_id": parent_id,
                "removed": len(removed),
                "shifted": len(shifted),
            },
        )
        return removed

    def _check_removal(self, parent: T, child: T) -> None:
        if not parent.has_tree:
            self._reject("remove_child", NodeNotInTree.parent_unattached(parent))
        if parent.tree_id != child.tree_id:
            self._reject("remove_child", NodeNotInTree.different_trees(parent, child))
        if not self.encoding.contains(parent, child):
            self._reject("remove_child", NodeNotChildOfParent(parent, child))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_children(self, session: AsyncSession, node: T) -> list[T]:
        """Direct children of ``node`` in insertion order (ascending lft)."""
        if not node.has_tree:
            return []
        return await self.store.find_all(
            session,
            self.encoding.descendants_of(self.model, node),
            self.model.depth == node.depth + 1,
            order_by=self.encoding.order_by_lft(self.model),
        )

    async def find_ancestors(self, session: AsyncSession, node: T) -> list[T]:
        """Path from the root down to the parent of ``node``.

        Root first, closest ancestor last; empty for a root.
        """
        if not node.has_tree:
            return []
        return await self.store.find_all(
            session,
            self.encoding.ancestors_of(self.model, node),
            order_by=(self.model.depth.asc(),),
        )

    async def find_parent(self, session: AsyncSession, node: T) -> T | None:
        """Immediate parent of ``node``, or None for a root."""
        if not node.has_tree or node.depth == ROOT_DEPTH:
            return None
        return await self.store.find_one(
            session,
            self.encoding.ancestors_of(self.model, node),
            self.model.depth == node.depth - 1,
        )

    async def find_tree_root(self, session: AsyncSession, tree_id: int) -> T:
        """The root node of tree ``tree_id``.

        Raises:
            NotFoundError: If no tree has that id
        """
        root = await self.store.find_one(
            session,
            self.model.tree_id == tree_id,
            self.model.depth == ROOT_DEPTH,
        )
        if root is None:
            raise NotFoundError(self.model.__name__, {"tree_id": tree_id})
        return root

    async def find_rightmost_child(self, session: AsyncSession, parent: T) -> T | None:
        """The direct child with the greatest rgt (the youngest), or None."""
        if not parent.has_tree:
            return None
        return await self.store.find_one(
            session,
            self.encoding.descendants_of(self.model, parent),
            self.model.depth == parent.depth + 1,
            order_by=self.encoding.order_by_rgt_desc(self.model),
        )

    find_youngest_child = find_rightmost_child

    async def find_subtree(self, session: AsyncSession, node: T) -> list[T]:
        """``node`` and all its descendants in pre-order."""
        if not node.has_tree:
            return []
        return await self.store.find_all(
            session,
            self.encoding.subtree_of(self.model, node),
            order_by=self.encoding.order_by_lft(self.model),
        )

    async def count(self, session: AsyncSession) -> int:
        """Number of stored nodes across all trees."""
        return await self.store.count_all(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _reload(self, session: AsyncSession, node: T) -> T:
        """Re-read ``node`` so interval maths starts from stored values."""
        fresh = await self.store.find_one(session, self.model.id == node.id)
        if fresh is None:
            raise NotFoundError(self.model.__name__, {"id": node.id})
        return fresh

    async def _lock_tree_row(self, session: AsyncSession, tree_id: int) -> None:
        if not self.settings.lock_tree_rows:
            return
        await self.store.find_one(
            session,
            self.model.tree_id == tree_id,
            self.model.depth == ROOT_DEPTH,
            for_update=True,
        )

    def _reject(self, operation: str, error: Exception) -> NoReturn:
        logger.info(
            "Tree precondition failed",
            extra={"operation": operation, "error": type(error).__name__},
        )
        raise error


__all__ = ["TreeIndex"]
