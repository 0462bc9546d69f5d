"""Per-session mutual exclusion.

The in-memory stores do not lock, so the runner holds one ``asyncio.Lock`` per
session id for the duration of a run. Locks are reference counted and dropped
once no run holds or waits on them.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple


class SessionLockTable:
    def __init__(self) -> None:
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, session_id: str) -> bool:
        entry = self._locks.get(session_id)
        return entry is not None and entry[0].locked()

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock, refs = self._locks.get(session_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[session_id] = (lock, refs + 1)
        try:
            async with lock:
                yield
        finally:
            lock, refs = self._locks[session_id]
            if refs <= 1:
                del self._locks[session_id]
            else:
                self._locks[session_id] = (lock, refs - 1)
