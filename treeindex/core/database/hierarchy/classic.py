"""Classic integer nested-set encoding (modified preorder tree traversal).

Bounds are consecutive integers of a preorder walk: the root of a fresh tree
is ``(1, 2)``, a node's ``rgt - lft + 1`` is twice its subtree size, and
siblings are packed with ``rgt_i + 1 == lft_{i+1}``.

Keeping the numbering dense costs writes: inserting a child shifts every
bound at or to the right of the insertion point by 2, and removing a subtree
of width ``w`` shifts every bound to its right back by ``w``. Reads stay
single range scans.

Example:
    root (1, 2) -> add c1 -> root (1, 4), c1 (2, 3)
                -> add c2 -> root (1, 6), c1 (2, 3), c2 (4, 5)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_

from treeindex.core.database.hierarchy.encoding import EncodingStrategy, Interval
from treeindex.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement

_lazy = get_lazy_logger(__name__)

ROOT_LFT = 1
ROOT_RGT = 2

# Bounds consumed by one leaf
NODE_WIDTH = 2


class ClassicEncoding(EncodingStrategy[int]):
    """Integer intervals, room made by shifting."""

    name = "classic"

    def root_interval(self) -> Interval[int]:
        return (ROOT_LFT, ROOT_RGT)

    def child_interval(self, parent: Any, anchor: Any | None) -> Interval[int]:
        # parent.rgt alone decides the slot; the anchor is not needed
        insertion_point = parent.rgt
        return (insertion_point, insertion_point + 1)

    def room_predicate(self, model: type[Any], parent: Any) -> ColumnElement[bool]:
        # Every lft >= p also has rgt > lft >= p
        return and_(model.tree_id == parent.tree_id, model.rgt >= parent.rgt)

    def make_room(self, records: Sequence[Any], parent: Any) -> None:
        insertion_point = parent.rgt
        for record in records:
            if record.lft >= insertion_point:
                record.lft += NODE_WIDTH
            if record.rgt >= insertion_point:
                record.rgt += NODE_WIDTH

        _lazy.debug(
            lambda: f"make_room at {insertion_point}: shifted {len(records)} records "
            f"in tree {parent.tree_id}"
        )

    def removal_predicate(
        self,
        model: type[Any],
        tree_id: int,
        removed: Interval[int],
    ) -> ColumnElement[bool]:
        _, removed_rgt = removed
        return and_(
            model.tree_id == tree_id,
            or_(model.lft > removed_rgt, model.rgt > removed_rgt),
        )

    def after_removal(self, records: Sequence[Any], removed: Interval[int]) -> None:
        removed_lft, removed_rgt = removed
        width = removed_rgt - removed_lft + 1
        for record in records:
            if record.lft > removed_rgt:
                record.lft -= width
            if record.rgt > removed_rgt:
                record.rgt -= width

        _lazy.debug(
            lambda: f"after_removal of [{removed_lft}, {removed_rgt}]: "
            f"closed gap of {width} over {len(records)} records"
        )

    def descendants_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            model.lft > node.lft,
            model.lft < node.rgt,
        )

    def ancestors_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            model.lft < node.lft,
            model.rgt > node.rgt,
        )

    def subtree_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            model.lft >= node.lft,
            model.rgt <= node.rgt,
        )

    def order_by_lft(self, model: type[Any]) -> tuple[Any, ...]:
        return (model.lft.asc(),)

    def order_by_rgt_desc(self, model: type[Any]) -> tuple[Any, ...]:
        return (model.rgt.desc(),)

    def contains(self, outer: Any, inner: Any) -> bool:
        return outer.lft < inner.lft and inner.rgt < outer.rgt


__all__ = ["ClassicEncoding", "NODE_WIDTH", "ROOT_LFT", "ROOT_RGT"]
