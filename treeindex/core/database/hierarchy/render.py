"""Text rendering of a stored tree.

Walks ``TreeIndex.find_children`` recursively and draws the familiar
``tree(1)`` layout:

    .
    └── root (id: 1) [treeId: 1 | lft: 1 | rgt: 6]
        ├── child-1 (id: 2) [treeId: 1 | lft: 2 | rgt: 3]
        └── child-2 (id: 3) [treeId: 1 | lft: 4 | rgt: 5]

Useful for debugging and for asserting whole-tree shapes in tests. Sibling
order is the index's insertion order.
"""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from treeindex.core.database.hierarchy.index import TreeIndex

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def format_bound(value: Any) -> str:
    """Render an interval bound; fractions always as ``n/d``."""
    if isinstance(value, Fraction):
        return f"{value.numerator}/{value.denominator}"
    return str(value)


def format_node(node: Any) -> str:
    """Default label: payload name, id and the nested-set columns."""
    label = getattr(node, "name", None) or type(node).__name__
    return (
        f"{label} (id: {node.id}) [treeId: {node.tree_id} | "
        f"lft: {format_bound(node.lft)} | rgt: {format_bound(node.rgt)}]"
    )


async def render_tree(
    session: AsyncSession,
    index: TreeIndex[Any],
    root: Any,
    label: Callable[[Any], str] = format_node,
) -> str:
    """Draw ``root`` and everything below it.

    ``root`` does not have to be a tree root; any attached node renders its
    own subtree.

    Args:
        session: Database session
        index: Index the node is stored in
        root: Top node of the drawing
        label: Text of one node

    Returns:
        The drawing, lines joined with newlines (no trailing newline)
    """
    lines = ["."]
    await _render(session, index, root, label, prefix="", is_last=True, lines=lines)
    return "\n".join(lines)


async def _render(
    session: AsyncSession,
    index: TreeIndex[Any],
    node: Any,
    label: Callable[[Any], str],
    *,
    prefix: str,
    is_last: bool,
    lines: list[str],
) -> None:
    lines.append(f"{prefix}{LAST_BRANCH if is_last else BRANCH}{label(node)}")
    children = await index.find_children(session, node)
    child_prefix = prefix + (SPACE if is_last else PIPE)
    for position, child in enumerate(children, start=1):
        await _render(
            session,
            index,
            child,
            label,
            prefix=child_prefix,
            is_last=position == len(children),
            lines=lines,
        )


__all__ = ["format_bound", "format_node", "render_tree"]
