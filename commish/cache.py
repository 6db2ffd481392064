"""
TTL caches used by the Sleeper client.

Both implementations expose the same two coroutines, ``get(key)`` and
``set(key, value, ttl_seconds)``. Entries expire on read; there is no other
eviction and no coherence between processes.
"""
import json
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import aiosqlite


class TTLCache(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...


class MemoryTTLCache:
    """Per-process cache; ``clock`` is injectable so tests can move time."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    def clear(self) -> None:
        self._entries.clear()


class SqliteTTLCache:
    """Cache backed by the ``api_cache`` table, shared by workers on one host."""

    def __init__(self, db_path: str, clock: Callable[[], float] = time.time):
        self.db_path = db_path
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT data, expires_at FROM api_cache WHERE url = ?", (key,))
            row = await cursor.fetchone()
        if not row:
            return None
        if self._clock() >= row["expires_at"]:
            return None
        return json.loads(row["data"])

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO api_cache (url, data, expires_at) VALUES (?, ?, ?)",
                (key, json.dumps(value), self._clock() + ttl_seconds),
            )
            await db.commit()
