"""Dyadic rational nested-set encoding.

Bounds are exact fractions whose denominators are powers of two. A new child
takes the half-open slice between its anchor and the parent's right bound:

    first child:  (parent.lft, mean(parent.lft, parent.rgt))
    next child:   (anchor.rgt, mean(anchor.rgt, parent.rgt))

where ``mean(a/b, c/d) = (a*d + c*b) / (2*b*d)`` is the exact arithmetic
average (not the Stern-Brocot mediant). The average always lies strictly
between its inputs, so there is always room: an insertion writes the new
record and nothing else, and a removal never shifts survivors. The price is
precision. Denominators double for every sibling appended at a level and for
every level descended, and freed slices are never handed out again.

Siblings touch (``rgt_i == lft_{i+1}``) and a first child shares its parent's
``lft``, so containment here is half-open: ``outer.lft <= inner.lft`` and
``inner.rgt < outer.rgt``.

Bounds are stored as numerator/denominator columns. Comparisons against a
known fraction ``p/q`` are exact integer cross-multiplications
(``numerator * q < p * denominator``), which is why denominators are capped
(see ``TreeIndexSettings.dyadic_max_denominator_bits``).

Example:
    root (0/1, 1/1) -> add c1 -> c1 (0/1, 1/2)
                    -> add c2 -> c2 (1/2, 3/4)
                    -> remove c1, add c3 -> c3 (3/4, 7/8)
"""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING, Any

from sqlalchemy import Float, and_, cast

from treeindex.core.database.exceptions import IntervalPrecisionExhausted
from treeindex.core.database.hierarchy.encoding import EncodingStrategy, Interval
from treeindex.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

_lazy = get_lazy_logger(__name__)

ROOT_LFT = Fraction(0, 1)
ROOT_RGT = Fraction(1, 1)

DEFAULT_MAX_DENOMINATOR_BITS = 31


def mean(a: Fraction, b: Fraction) -> Fraction:
    """Exact arithmetic mean of two fractions.

    ``mean(a/b, c/d) = (a*d + c*b) / (2*b*d)``, reduced to lowest terms.

    Example:
        >>> mean(Fraction(1, 2), Fraction(1, 1))
        Fraction(3, 4)
    """
    return Fraction(
        a.numerator * b.denominator + b.numerator * a.denominator,
        2 * a.denominator * b.denominator,
    )


def is_dyadic(value: Fraction) -> bool:
    """Whether the denominator is a power of two."""
    denominator = value.denominator
    return denominator & (denominator - 1) == 0


class _Bound:
    """SQL view of one stored fraction (a numerator/denominator column pair)."""

    __slots__ = ("numerator", "denominator")

    def __init__(self, numerator: Any, denominator: Any) -> None:
        self.numerator = numerator
        self.denominator = denominator

    # Denominators are positive, so cross-multiplying keeps the ordering
    def __lt__(self, value: Fraction) -> ColumnElement[bool]:
        return self.numerator * value.denominator < value.numerator * self.denominator

    def __le__(self, value: Fraction) -> ColumnElement[bool]:
        return self.numerator * value.denominator <= value.numerator * self.denominator

    def __gt__(self, value: Fraction) -> ColumnElement[bool]:
        return self.numerator * value.denominator > value.numerator * self.denominator

    def __ge__(self, value: Fraction) -> ColumnElement[bool]:
        return self.numerator * value.denominator >= value.numerator * self.denominator

    def as_float(self) -> ColumnElement[float]:
        # Exact in a double while denominators stay within 2**53
        return cast(self.numerator, Float) / self.denominator


def _lft(model: type[Any]) -> _Bound:
    return _Bound(model.lft_numerator, model.lft_denominator)


def _rgt(model: type[Any]) -> _Bound:
    return _Bound(model.rgt_numerator, model.rgt_denominator)


class DyadicEncoding(EncodingStrategy[Fraction]):
    """Exact-fraction intervals, append-only insertion."""

    name = "dyadic"

    def __init__(self, max_denominator_bits: int = DEFAULT_MAX_DENOMINATOR_BITS) -> None:
        """Initialize the encoding.

        Args:
            max_denominator_bits: Refuse insertions whose bounds would need a
                denominator above ``2**max_denominator_bits``
        """
        self.max_denominator_bits = max_denominator_bits

    def root_interval(self) -> Interval[Fraction]:
        return (ROOT_LFT, ROOT_RGT)

    def child_interval(self, parent: Any, anchor: Any | None) -> Interval[Fraction]:
        parent_lft, parent_rgt = parent.lft, parent.rgt
        new_lft = parent_lft if anchor is None else anchor.rgt
        new_rgt = mean(new_lft, parent_rgt)

        self._check_precision(new_rgt, parent)
        _lazy.debug(
            lambda: f"child_interval under ({parent_lft}, {parent_rgt}) "
            f"anchored at {new_lft}: ({new_lft}, {new_rgt})"
        )
        return (new_lft, new_rgt)

    def _check_precision(self, bound: Fraction, parent: Any) -> None:
        if bound.denominator > 1 << self.max_denominator_bits:
            raise IntervalPrecisionExhausted(
                bits=bound.denominator.bit_length() - 1,
                limit=self.max_denominator_bits,
                parent=parent,
            )

    def descendants_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            _lft(model) >= node.lft,
            _rgt(model) < node.rgt,
        )

    def ancestors_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            _lft(model) <= node.lft,
            _rgt(model) > node.rgt,
        )

    def subtree_of(self, model: type[Any], node: Any) -> ColumnElement[bool]:
        return and_(
            model.tree_id == node.tree_id,
            _lft(model) >= node.lft,
            _rgt(model) <= node.rgt,
        )

    def order_by_lft(self, model: type[Any]) -> tuple[Any, ...]:
        # A first child shares its parent's lft; the shallower node comes first
        return (_lft(model).as_float().asc(), model.depth.asc())

    def order_by_rgt_desc(self, model: type[Any]) -> tuple[Any, ...]:
        return (_rgt(model).as_float().desc(),)

    def contains(self, outer: Any, inner: Any) -> bool:
        return outer.lft <= inner.lft and inner.rgt < outer.rgt

    def __repr__(self) -> str:
        return f"DyadicEncoding(max_denominator_bits={self.max_denominator_bits})"


__all__ = [
    "DEFAULT_MAX_DENOMINATOR_BITS",
    "DyadicEncoding",
    "ROOT_LFT",
    "ROOT_RGT",
    "is_dyadic",
    "mean",
]
