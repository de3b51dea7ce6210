# core/cache.py
"""
Caching utilities: per-farm decision cache and sensor history buffer
"""
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from cachetools import LRUCache

@dataclass
class CacheEntry:
    value: Any
    computed_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.computed_at < self.ttl

class DecisionCache:
    """
    In-memory per-farm cache of the last computed report.

    Entries are kept after their TTL runs out so that a failing computation
    can still fall back to the last known report; ``get`` only returns fresh
    entries, ``get_stale`` returns whatever is stored.

    Every ``invalidate`` bumps a per-farm version. A writer that captured the
    version before doing slow work passes it to ``set`` and the write is
    dropped if an invalidation happened in between.
    """

    def __init__(
        self,
        ttl: float = 60,
        max_size: int = 1000,
        timer: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl
        self._timer = timer
        self._entries: Dict[str, CacheEntry] = LRUCache(maxsize=max_size)
        self._versions: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache if still within its TTL"""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._timer()):
            return None
        return entry.value

    async def get_stale(self, key: str) -> Optional[Any]:
        """Get the last stored value regardless of age"""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def version(self, key: str) -> int:
        return self._versions.get(key, 0)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        version: Optional[int] = None
    ) -> bool:
        """Set value in cache; returns False when the write lost to an invalidation"""
        if version is not None and version != self.version(key):
            return False
        self._entries[key] = CacheEntry(
            value=value,
            computed_at=self._timer(),
            ttl=self.ttl if ttl is None else ttl
        )
        return True

    async def invalidate(self, key: str) -> None:
        """Drop the entry for key and fence off in-flight writers"""
        self._entries.pop(key, None)
        self._versions[key] = self.version(key) + 1

    async def clear(self) -> None:
        """Clear all cache"""
        self._entries.clear()
        self._versions.clear()

class HistoryBuffer:
    """Bounded per-farm ring buffer of recent sensor readings (oldest first)"""

    def __init__(self, size: int = 20, max_farms: int = 1000):
        self.size = size
        self._buffers: Dict[str, Deque[Any]] = LRUCache(maxsize=max_farms)

    def append(self, key: str, entry: Any) -> None:
        buffer = self._buffers.get(key)
        if buffer is None:
            buffer = deque(maxlen=self.size)
            self._buffers[key] = buffer
        buffer.append(entry)

    def recent(self, key: str) -> List[Any]:
        return list(self._buffers.get(key, ()))

    def latest(self, key: str) -> Optional[Any]:
        buffer = self._buffers.get(key)
        return buffer[-1] if buffer else None

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._buffers.clear()
        else:
            self._buffers.pop(key, None)
