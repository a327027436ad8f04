"""Minimal generic record store for SQLAlchemy models.

This is the storage boundary of the tree index: record persistence,
predicate queries and a transaction scope. Session is always explicit, the
same way callers pass it to the index.

Example:
    store = NodeStore(Category)

    async with store.unit_of_work(session):
        await store.insert(session, node)
        nodes = await store.find_all(
            session,
            Category.tree_id == node.tree_id,
            Category.rgt >= 4,
            order_by=(Category.lft,),
        )
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from treeindex.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Sequence

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession


class NodeStore[T]:
    """Generic store for one mapped model.

    Provides:
        - insert(session, record) -> id
        - update(session, record)
        - delete_many(session, *predicates) -> list[T]
        - count_all(session) -> int
        - find_one(session, *predicates, order_by) -> T | None
        - find_all(session, *predicates, order_by) -> list[T]
        - unit_of_work(session): atomic commit/rollback scope

    Predicates are SQLAlchemy boolean expressions over the model's columns
    (``Model.tree_id == 3``, ``Model.lft >= 5``); several predicates are
    combined with AND.

    Every read uses ``populate_existing`` so instances already held by the
    session are overwritten with stored values. Interval maths always starts
    from the committed state, not from whatever a caller last saw.
    """

    __slots__ = ("model", "_logger", "_lazy")

    def __init__(self, model: type[T]) -> None:
        """Initialize store with model class.

        Args:
            model: SQLAlchemy model class using one of the node mixins
        """
        self.model = model
        self._logger = logging.getLogger(f"store.{model.__name__}")
        self._lazy = get_lazy_logger(f"store.{model.__name__}")

    @asynccontextmanager
    async def unit_of_work(self, session: AsyncSession) -> AsyncIterator[AsyncSession]:
        """Group several primitive calls into one atomic unit.

        Without an active transaction a new one is begun and committed on
        exit (rolled back on error). When the caller already holds a
        transaction the work runs in a SAVEPOINT: on error only this unit is
        rolled back, on success it is released and committing the outer
        transaction stays with the caller.

        Args:
            session: Database session

        Yields:
            The same session
        """
        if session.in_transaction():
            async with session.begin_nested():
                yield session
            self._lazy.debug(lambda: f"db.release_savepoint: {self.model.__name__}")
            return

        async with session.begin():
            yield session
        self._lazy.debug(lambda: f"db.commit: {self.model.__name__}")

    async def insert(self, session: AsyncSession, record: T) -> Any:
        """Persist a new record and return its store-assigned id.

        Args:
            session: Database session
            record: Transient instance

        Returns:
            Primary key assigned by the database
        """
        session.add(record)
        await session.flush()

        record_id = getattr(record, "id", None)
        self._lazy.debug(lambda: f"db.insert: {self.model.__name__}(id={record_id})")
        return record_id

    async def update(self, session: AsyncSession, record: T) -> None:
        """Write the in-memory state of a tracked record.

        Args:
            session: Database session
            record: Instance loaded from (or added to) this session
        """
        session.add(record)
        await session.flush()
        self._lazy.debug(
            lambda: f"db.update: {self.model.__name__}(id={getattr(record, 'id', None)})"
        )

    async def update_many(self, session: AsyncSession, records: Iterable[T]) -> int:
        """Write several tracked records with a single flush.

        Args:
            session: Database session
            records: Modified instances

        Returns:
            Number of records written
        """
        records_list = list(records)
        if not records_list:
            return 0
        session.add_all(records_list)
        await session.flush()
        self._lazy.debug(
            lambda: f"db.update_many: {self.model.__name__} -> {len(records_list)} updated"
        )
        return len(records_list)

    async def delete_many(
        self,
        session: AsyncSession,
        *predicates: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> list[T]:
        """Delete every record matching the predicates.

        Records are loaded first so the deleted instances can be handed back
        (and removed from the session's identity map).

        Args:
            session: Database session
            *predicates: Filter expressions (AND-combined)
            order_by: Order of the returned records

        Returns:
            The deleted records
        """
        records = await self.find_all(session, *predicates, order_by=order_by)
        for record in records:
            await session.delete(record)
        await session.flush()

        self._logger.info(
            "Records deleted",
            extra={"entity": self.model.__name__, "count": len(records), "operation": "db.delete_many"},
        )
        return records

    async def count_all(self, session: AsyncSession) -> int:
        """Count every record of the model.

        Args:
            session: Database session

        Returns:
            Number of stored records
        """
        stmt = select(func.count()).select_from(self.model)
        return (await session.execute(stmt)).scalar_one()

    async def find_one(
        self,
        session: AsyncSession,
        *predicates: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        for_update: bool = False,
    ) -> T | None:
        """Get the first record matching the predicates.

        Args:
            session: Database session
            *predicates: Filter expressions (AND-combined)
            order_by: Ordering applied before taking the first row
            for_update: Lock the row (SELECT ... FOR UPDATE) until the
                transaction ends. Dialects without row locks ignore it.

        Returns:
            Record or None
        """
        stmt = self._select(*predicates, order_by=order_by).limit(1)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        instance = result.scalars().first()

        self._lazy.debug(
            lambda: f"db.find_one: {self.model.__name__} -> {'found' if instance else 'not found'}"
        )
        return instance

    async def find_all(
        self,
        session: AsyncSession,
        *predicates: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> list[T]:
        """List every record matching the predicates.

        Args:
            session: Database session
            *predicates: Filter expressions (AND-combined)
            order_by: ORDER BY expressions

        Returns:
            Matching records in the requested order
        """
        result = await session.execute(self._select(*predicates, order_by=order_by))
        items = list(result.scalars().all())

        self._lazy.debug(lambda: f"db.find_all: {self.model.__name__} -> {len(items)} items")
        return items

    def _select(
        self,
        *predicates: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> Select[tuple[T]]:
        stmt = select(self.model)
        if predicates:
            stmt = stmt.where(*predicates)
        if order_by:
            stmt = stmt.order_by(*order_by)
        return stmt.execution_options(populate_existing=True)


__all__ = ["NodeStore"]
