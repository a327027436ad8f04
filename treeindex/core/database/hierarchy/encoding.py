"""Interval encoding strategies for nested-set trees.

An encoding owns everything that depends on the number type of ``lft`` and
``rgt``: the root interval, where a new child goes, which existing records
an insertion or a removal rewrites, and how interval predicates are spelled
in SQL. ``TreeIndex`` owns everything else (preconditions, locking, store
calls), so the orchestration is written once for all encodings.

The strategies are pure: they build predicates and mutate records handed to
them, but never touch a session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement

    from treeindex.core.database.hierarchy.mixins import NestedSetMixin

type Interval[N] = tuple[N, N]


class EncodingStrategy[N](ABC):
    """Interval arithmetic and interval predicates for one encoding.

    Type parameter ``N`` is the bound type (``int`` or ``Fraction``).
    """

    name: str

    # ------------------------------------------------------------------
    # Interval arithmetic
    # ------------------------------------------------------------------

    @abstractmethod
    def root_interval(self) -> Interval[N]:
        """Interval given to the root of a new tree."""

    @abstractmethod
    def child_interval(self, parent: Any, anchor: Any | None) -> Interval[N]:
        """Interval of a new last child of ``parent``.

        Args:
            parent: Attached parent record, holding its current interval
            anchor: The parent's current youngest child, or None

        Returns:
            ``(lft, rgt)`` for the new child
        """

    def room_predicate(self, model: type[Any], parent: Any) -> ColumnElement[bool] | None:
        """Select the records an insertion under ``parent`` rewrites.

        Returns None when insertion never touches existing records.
        """
        return None

    def make_room(self, records: Sequence[Any], parent: Any) -> None:
        """Rewrite, in place, the records selected by room_predicate()."""

    def removal_predicate(
        self,
        model: type[Any],
        tree_id: int,
        removed: Interval[N],
    ) -> ColumnElement[bool] | None:
        """Select the surviving records a removal of ``removed`` rewrites.

        Returns None when removal never touches surviving records.
        """
        return None

    def after_removal(self, records: Sequence[Any], removed: Interval[N]) -> None:
        """Rewrite, in place, the records selected by removal_predicate()."""

    # ------------------------------------------------------------------
    # Interval predicates (SQL) and containment (Python)
    # ------------------------------------------------------------------

    @abstractmethod
    def descendants_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        """Records whose interval lies inside ``node``'s, excluding ``node``."""

    @abstractmethod
    def ancestors_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        """Records whose interval strictly encloses ``node``'s."""

    @abstractmethod
    def subtree_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        """Records within ``[node.lft, node.rgt]`` inclusive (node included)."""

    @abstractmethod
    def order_by_lft(self, model: type[Any]) -> tuple[Any, ...]:
        """ORDER BY clauses for ascending ``lft`` (pre-order within a tree)."""

    @abstractmethod
    def order_by_rgt_desc(self, model: type[Any]) -> tuple[Any, ...]:
        """ORDER BY clauses for descending ``rgt``."""

    @abstractmethod
    def contains(self, outer: NestedSetMixin, inner: NestedSetMixin) -> bool:
        """Whether ``inner``'s interval nests inside ``outer``'s."""

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------

    def read_interval(self, node: Any) -> Interval[N]:
        return (node.lft, node.rgt)

    def write_interval(self, node: Any, interval: Interval[N]) -> None:
        node.lft, node.rgt = interval

    def check_model(self, model: type[Any]) -> None:
        """Reject models carrying another encoding's columns.

        Raises:
            TypeError: If the model was declared with the wrong node mixin
        """
        encoding = getattr(model, "__encoding__", None)
        if encoding != self.name:
            msg = (
                f"{model.__name__} is declared with {encoding!r} node columns, "
                f"cannot be indexed with the {self.name!r} encoding"
            )
            raise TypeError(msg)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = ["EncodingStrategy", "Interval"]
