"""Mixins carrying the nested-set columns of a tree node.

A model mixes in exactly one of the encoding mixins next to ``Base`` and a
primary key mixin; every other column is caller payload the index never
interprets.

    class Category(Base, IntegerPKMixin, ClassicNodeMixin):
        __tablename__ = "categories"
        name: Mapped[str] = mapped_column(String(255))

    class Folder(Base, IntegerPKMixin, DyadicNodeMixin):
        __tablename__ = "folders"
        name: Mapped[str] = mapped_column(String(255))
"""

from __future__ import annotations

from fractions import Fraction
from typing import Any, ClassVar

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

# tree_id of a node that is not (yet) attached to any tree
NO_TREE = -1

ROOT_DEPTH = 0


class NestedSetMixin:
    """Columns shared by every encoding: tree discriminator and depth.

    Provides:
        tree_id: Tree the node belongs to (NO_TREE before attachment)
        depth: Distance from the root (root = 0)
    """

    __allow_unmapped__ = True

    # Name of the encoding whose columns the concrete mixin carries
    __encoding__: ClassVar[str]

    tree_id: Mapped[int] = mapped_column(
        BigInteger,
        default=NO_TREE,
        index=True,
        nullable=False,
        comment="Tree discriminator (-1 = not attached)",
    )
    depth: Mapped[int] = mapped_column(
        Integer,
        default=ROOT_DEPTH,
        nullable=False,
        comment="Distance from the tree root",
    )

    @property
    def has_tree(self) -> bool:
        """Whether the node is attached to a tree.

        This property does NOT query the database.
        """
        return self.tree_id is not None and self.tree_id != NO_TREE

    @property
    def is_root(self) -> bool:
        """Whether the node is the root of its tree."""
        return self.has_tree and self.depth == ROOT_DEPTH

    @property
    def interval(self) -> tuple[Any, Any]:
        """The ``(lft, rgt)`` pair in the encoding's number type."""
        return (self.lft, self.rgt)  # type: ignore[attr-defined]


class ClassicNodeMixin(NestedSetMixin):
    """Integer nested-set bounds.

    Provides:
        lft, rgt: Integer interval bounds, placeholder (1, 2) until attached
    """

    __encoding__ = "classic"

    lft: Mapped[int] = mapped_column(
        BigInteger,
        default=1,
        index=True,
        nullable=False,
    )
    rgt: Mapped[int] = mapped_column(
        BigInteger,
        default=2,
        index=True,
        nullable=False,
    )


class DyadicNodeMixin(NestedSetMixin):
    """Exact rational nested-set bounds.

    Each bound is stored as a numerator/denominator pair so that no float
    rounding ever reaches the interval arithmetic. The ``lft``/``rgt``
    properties read and write ``fractions.Fraction`` values, always reduced
    to lowest terms (``Fraction(2, 4)`` is stored as 1/2).

    Provides:
        lft_numerator, lft_denominator, rgt_numerator, rgt_denominator:
            BigInteger columns, placeholder (0/1, 1/1) until attached
        lft, rgt: Fraction views over the columns
    """

    __encoding__ = "dyadic"

    lft_numerator: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    lft_denominator: Mapped[int] = mapped_column(BigInteger, default=1, nullable=False)
    rgt_numerator: Mapped[int] = mapped_column(BigInteger, default=1, nullable=False)
    rgt_denominator: Mapped[int] = mapped_column(BigInteger, default=1, nullable=False)

    @property
    def lft(self) -> Fraction | None:
        if self.lft_numerator is None:
            return None
        return Fraction(self.lft_numerator, self.lft_denominator)

    @lft.setter
    def lft(self, value: Fraction) -> None:
        value = Fraction(value)
        self.lft_numerator = value.numerator
        self.lft_denominator = value.denominator

    @property
    def rgt(self) -> Fraction | None:
        if self.rgt_numerator is None:
            return None
        return Fraction(self.rgt_numerator, self.rgt_denominator)

    @rgt.setter
    def rgt(self, value: Fraction) -> None:
        value = Fraction(value)
        self.rgt_numerator = value.numerator
        self.rgt_denominator = value.denominator


__all__ = [
    "NO_TREE",
    "ROOT_DEPTH",
    "ClassicNodeMixin",
    "DyadicNodeMixin",
    "NestedSetMixin",
]
