"""Process-wide per-listing locks shared by the ledger and the arbitration engine.

The in-process lock orders coroutines of one worker; the listing row's
``FOR UPDATE`` lock orders workers against each other. A lock lives only while
some coroutine holds or waits for it, so ids that never resolve to a listing
leave nothing behind.
"""
import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ListingLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, listing_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(listing_id, asyncio.Lock())
        self._users[listing_id] = self._users.get(listing_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[listing_id] -= 1
            if self._users[listing_id] == 0:
                del self._users[listing_id]
                del self._locks[listing_id]

    def __len__(self) -> int:
        return len(self._locks)


_registry: ListingLockRegistry | None = None


def get_listing_locks() -> ListingLockRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = ListingLockRegistry()
    return _registry
