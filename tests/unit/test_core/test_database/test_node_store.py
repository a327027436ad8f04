"""Tests for NodeStore persistence, queries and the unit of work."""

from __future__ import annotations

import pytest
from sqlalchemy import update

from treeindex.core.database import NodeStore


@pytest.fixture
def store(classic_index):
    return NodeStore(classic_index.model)


@pytest.fixture
def make(classic_index):
    def _make(name, lft=1, rgt=2, tree_id=1, depth=0):
        return classic_index.model(name=name, lft=lft, rgt=rgt, tree_id=tree_id, depth=depth)

    return _make


@pytest.mark.unit
class TestNodeStore:
    """Primitive record operations."""

    async def test_insert_assigns_id(self, db_session, store, make):
        record = make("a")

        record_id = await store.insert(db_session, record)

        assert record_id is not None
        assert record.id == record_id
        assert await store.count_all(db_session) == 1

    async def test_find_one_and_find_all(self, db_session, store, make):
        model = store.model
        for name, lft, rgt in (("root", 1, 6), ("b", 4, 5), ("a", 2, 3)):
            await store.insert(db_session, make(name, lft, rgt))

        found = await store.find_one(db_session, model.name == "b")
        assert found is not None
        assert found.lft == 4

        assert await store.find_one(db_session, model.name == "missing") is None

        ordered = await store.find_all(db_session, model.lft > 1, order_by=(model.lft.asc(),))
        assert [r.name for r in ordered] == ["a", "b"]

        first_by_rgt = await store.find_one(
            db_session, model.tree_id == 1, order_by=(model.rgt.desc(),)
        )
        assert first_by_rgt.name == "root"

    async def test_find_refreshes_held_instances(self, db_session, store, make):
        model = store.model
        record = make("a")
        await store.insert(db_session, record)
        await db_session.execute(
            update(model.__table__).where(model.__table__.c.id == record.id).values(lft=7)
        )

        found = await store.find_one(db_session, model.id == record.id)

        assert found is record
        assert record.lft == 7

    async def test_update_many(self, db_session, store, make):
        records = [make(f"n{i}", lft=i, rgt=i + 1) for i in range(3)]
        for record in records:
            await store.insert(db_session, record)
        for record in records:
            record.rgt += 10

        assert await store.update_many(db_session, records) == 3
        assert await store.update_many(db_session, []) == 0

        stored = await store.find_all(db_session, order_by=(store.model.lft,))
        assert [r.rgt for r in stored] == [11, 12, 13]

    async def test_delete_many(self, db_session, store, make):
        model = store.model
        for name, lft, rgt in (("root", 1, 6), ("a", 2, 3), ("b", 4, 5)):
            await store.insert(db_session, make(name, lft, rgt))

        deleted = await store.delete_many(db_session, model.lft >= 2, order_by=(model.lft,))

        assert [r.name for r in deleted] == ["a", "b"]
        assert await store.count_all(db_session) == 1


@pytest.mark.unit
class TestUnitOfWork:
    """Atomic grouping of several store calls."""

    async def test_commits_on_success(self, db_session, store, make):
        async with store.unit_of_work(db_session):
            await store.insert(db_session, make("a"))
            await store.insert(db_session, make("b"))

        assert not db_session.in_transaction()
        assert await store.count_all(db_session) == 2

    async def test_rolls_back_on_error(self, db_session, store, make):
        with pytest.raises(RuntimeError, match="boom"):
            async with store.unit_of_work(db_session):
                await store.insert(db_session, make("a"))
                raise RuntimeError("boom")

        assert await store.count_all(db_session) == 0

    async def test_joins_caller_transaction(self, db_session, store, make):
        await store.count_all(db_session)
        assert db_session.in_transaction()

        async with store.unit_of_work(db_session):
            await store.insert(db_session, make("a"))

        assert db_session.in_transaction()
        assert await store.count_all(db_session) == 1

        await db_session.rollback()
        assert await store.count_all(db_session) == 0

    async def test_failed_unit_rolls_back_alone_inside_caller_transaction(
        self, db_session, store, make
    ):
        await store.insert(db_session, make("kept"))
        assert db_session.in_transaction()

        with pytest.raises(RuntimeError, match="interrupted"):
            async with store.unit_of_work(db_session):
                await store.insert(db_session, make("dropped"))
                raise RuntimeError("interrupted")

        assert db_session.in_transaction()
        assert [r.name for r in await store.find_all(db_session)] == ["kept"]
