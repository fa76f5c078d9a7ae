"""Per-key asyncio locks."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class KeyedLocks:
    """Hands out one lock per key so allocations for a key are serialized.

    A key's lock only lives while some task holds or waits for it.
    """

    _locks: dict[Hashable, asyncio.Lock] = field(default_factory=dict)
    _users: dict[Hashable, int] = field(default_factory=dict)

    @asynccontextmanager
    async def lock(self, *key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for a key for the duration of the block."""
        entry = self._locks.get(key)
        if entry is None:
            entry = asyncio.Lock()
            self._locks[key] = entry
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with entry:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]
