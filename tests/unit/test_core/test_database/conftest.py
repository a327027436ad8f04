"""Tree models and index fixtures shared by the database tests."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from treeindex.core.database import Base, IntegerPKMixin
from treeindex.core.database.hierarchy import (
    ClassicEncoding,
    ClassicNodeMixin,
    DyadicEncoding,
    DyadicNodeMixin,
    TreeIndex,
)
from treeindex.core.settings import TreeIndexSettings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    type TreeBuilder = Callable[[TreeIndex[Any]], Awaitable[SimpleNamespace]]


# ============================================================================
# Test Models
# ============================================================================


class ClassicTag(Base, IntegerPKMixin, ClassicNodeMixin):
    """Tag tree stored with integer bounds."""

    __tablename__ = "classic_tags"

    name: Mapped[str] = mapped_column(String(255))


class DyadicTag(Base, IntegerPKMixin, DyadicNodeMixin):
    """Tag tree stored with fraction bounds."""

    __tablename__ = "dyadic_tags"

    name: Mapped[str] = mapped_column(String(255))


# ============================================================================
# Index Fixtures
# ============================================================================


@pytest.fixture
def tree_settings() -> TreeIndexSettings:
    return TreeIndexSettings(lock_tree_rows=True)


@pytest.fixture
def classic_index(tree_settings: TreeIndexSettings) -> TreeIndex[ClassicTag]:
    return TreeIndex(ClassicTag, ClassicEncoding(), settings=tree_settings)


@pytest.fixture
def dyadic_index(tree_settings: TreeIndexSettings) -> TreeIndex[DyadicTag]:
    return TreeIndex(DyadicTag, DyadicEncoding(), settings=tree_settings)


@pytest.fixture(params=["classic", "dyadic"])
def any_index(request, classic_index, dyadic_index) -> TreeIndex[Any]:
    """Run a test once per encoding."""
    return classic_index if request.param == "classic" else dyadic_index


# ============================================================================
# Tree Shapes
# ============================================================================


@pytest.fixture
def tree_with_one_child(db_session: AsyncSession) -> TreeBuilder:
    """root -> child-1"""

    async def build(index: TreeIndex[Any]) -> SimpleNamespace:
        root = index.create_node(name="root")
        tree_id = await index.start_tree(db_session, root)
        child1 = await index.add_child(db_session, root, index.create_node(name="child-1"))
        return SimpleNamespace(tree_id=tree_id, root=root, child1=child1)

    return build


@pytest.fixture
def tree_with_two_children(db_session: AsyncSession) -> TreeBuilder:
    """root -> (child-1, child-2)"""

    async def build(index: TreeIndex[Any]) -> SimpleNamespace:
        root = index.create_node(name="root")
        tree_id = await index.start_tree(db_session, root)
        child1 = await index.add_child(db_session, root, index.create_node(name="child-1"))
        child2 = await index.add_child(db_session, root, index.create_node(name="child-2"))
        return SimpleNamespace(tree_id=tree_id, root=root, child1=child1, child2=child2)

    return build


@pytest.fixture
def complex_tree(db_session: AsyncSession) -> TreeBuilder:
    """Three levels below the root, built depth first.

    .
    └── root
        ├── child-1
        │   ├── subChild-1
        │   │   └── subSubChild-1
        │   └── subChild-2
        └── child-2
            └── lastSubChild
    """

    async def build(index: TreeIndex[Any]) -> SimpleNamespace:
        async def add(parent: Any, name: str) -> Any:
            return await index.add_child(db_session, parent, index.create_node(name=name))

        root = index.create_node(name="root")
        tree_id = await index.start_tree(db_session, root)
        child1 = await add(root, "child-1")
        sub_child1 = await add(child1, "subChild-1")
        sub_sub_child1 = await add(sub_child1, "subSubChild-1")
        sub_child2 = await add(child1, "subChild-2")
        child2 = await add(root, "child-2")
        last_sub_child = await add(child2, "lastSubChild")
        return SimpleNamespace(
            tree_id=tree_id,
            root=root,
            child1=child1,
            sub_child1=sub_child1,
            sub_sub_child1=sub_sub_child1,
            sub_child2=sub_child2,
            child2=child2,
            last_sub_child=last_sub_child,
        )

    return build
