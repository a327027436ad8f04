"""Tests for TreeIndex mutations on sessions that expire instances on commit.

``async_sessionmaker(engine)`` defaults to ``expire_on_commit=True``; after a
mutation commits, every instance it touched is expired and reading one would
need a lazy load outside the greenlet.
"""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from treeindex.core.database.hierarchy import TreeIndex


@pytest.fixture
def sessions(db_session, db_engine) -> async_sessionmaker:
    """Default session factory; ``db_session`` creates the tables."""
    return async_sessionmaker(db_engine)


async def _detached(sessions: async_sessionmaker, index: TreeIndex[Any], node_id: int) -> Any:
    """Load a node in a short-lived session and hand it back detached."""
    async with sessions() as reader:
        return await index.store.find_one(reader, index.model.id == node_id)


@pytest.mark.unit
class TestExpiringSession:
    async def test_start_tree_commits_and_returns_id(self, sessions, classic_index):
        async with sessions() as session:
            root = classic_index.create_node(name="root")

            tree_id = await classic_index.start_tree(session, root)

            assert not session.in_transaction()
            await session.refresh(root)
            assert root.tree_id == root.id == tree_id
            assert await classic_index.count(session) == 1

    async def test_add_child_commits(self, sessions, classic_index):
        async with sessions() as session:
            tree_id = await classic_index.start_tree(session, classic_index.create_node(name="root"))
        root = await _detached(sessions, classic_index, tree_id)

        async with sessions() as session:
            child = await classic_index.add_child(
                session, root, classic_index.create_node(name="child-1")
            )

            assert not session.in_transaction()
            await session.refresh(child)
            assert child.tree_id == tree_id
            assert child.depth == 1
            assert child.interval == (2, 3)

    async def test_remove_child_commits(self, sessions, any_index):
        async with sessions() as session:
            tree_id = await any_index.start_tree(session, any_index.create_node(name="root"))
        root = await _detached(sessions, any_index, tree_id)

        async with sessions() as session:
            child = await any_index.add_child(session, root, any_index.create_node(name="child-1"))
            await session.refresh(child)
            child_id = child.id

        root = await _detached(sessions, any_index, tree_id)
        child = await _detached(sessions, any_index, child_id)

        async with sessions() as session:
            removed = await any_index.remove_child(session, root, child)

            assert not session.in_transaction()
            assert len(removed) == 1
            assert await any_index.count(session) == 1
