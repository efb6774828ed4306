"""
Per-strategy write serialization.

One aggregation pass per strategy at a time inside this process; different
strategies never wait on each other. Cross-process serialization comes from
the strategy row lock taken by the service (SELECT ... FOR UPDATE).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class StrategyLockRegistry:
    """
    Lock per strategy, kept only while someone holds or waits on it

    Lookup and reference counting happen without an await in between, so
    they need no guard on a single event loop.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, strategy_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(strategy_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[strategy_id] = lock
        self._users[strategy_id] = self._users.get(strategy_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[strategy_id] -= 1
            if self._users[strategy_id] == 0:
                del self._users[strategy_id]
                del self._locks[strategy_id]

    def is_locked(self, strategy_id: int) -> bool:
        lock = self._locks.get(strategy_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


strategy_locks = StrategyLockRegistry()
