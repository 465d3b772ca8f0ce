"""
Per-key asyncio locks.

Serializes work on one identifier (signup, confirm, dispatch write-back)
while requests for different identifiers proceed concurrently. Lock entries
are reference counted and dropped once no coroutine holds or awaits them.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    ref_count: int = 0


class KeyedLock:
    """Mapping of key -> asyncio.Lock with automatic cleanup."""

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for `key` for the duration of the block."""
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry
        entry.ref_count += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.ref_count -= 1
            if entry.ref_count == 0:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
