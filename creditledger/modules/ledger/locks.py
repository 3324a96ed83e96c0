"""Per-account mutual exclusion for adjustments within one process."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class AccountLockRegistry:
    """Hands out one ``asyncio.Lock`` per account id.

    Locks are created on first use and dropped once nobody holds or waits on
    them, so the registry only grows with the number of accounts in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, account_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        self._users[account_id] = self._users.get(account_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[account_id] -= 1
            if self._users[account_id] == 0:
                del self._users[account_id]
                del self._locks[account_id]

    def __len__(self) -> int:
        return len(self._locks)
