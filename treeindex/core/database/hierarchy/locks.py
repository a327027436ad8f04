"""Per-tree serialization of mutations.

Interval maths on one tree is only correct if no other mutation of the same
tree interleaves with it. Mutations of different trees never interfere and
must not wait on each other, so there is one lock per tree id rather than
one lock for the index.

The registry serializes coroutines of one process (one event loop). Writers
in other processes are serialized by the row lock TreeIndex takes on the
tree root inside the transaction.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class TreeLockRegistry:
    """Hands out one ``asyncio.Lock`` per tree id.

    Locks are held in a weak-value mapping, so a tree nobody is mutating
    costs nothing; a lock lives exactly as long as some coroutine holds or
    waits on it.

    Example:
        locks = TreeLockRegistry()

        async with locks.lock(tree_id):
            ...  # read intervals, compute, write
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, tree_id: int) -> asyncio.Lock:
        """Return the lock of ``tree_id``, creating it on first use."""
        lock = self._locks.get(tree_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tree_id] = lock
        return lock

    @asynccontextmanager
    async def lock(self, tree_id: int) -> AsyncIterator[None]:
        """Hold the lock of ``tree_id`` for the duration of the block."""
        tree_lock = self.get(tree_id)
        if tree_lock.locked():
            logger.debug("Waiting for tree lock", extra={"tree_id": tree_id})
        async with tree_lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, tree_id: object) -> bool:
        return tree_id in self._locks


__all__ = ["TreeLockRegistry"]
