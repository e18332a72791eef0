import asyncio
import logging
from collections import OrderedDict
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


class BoundedLRUCache:
    """In-process tier holding serialized JSON payloads.

    Bounded both by entry count and by the UTF-8 size of the payloads; the
    least recently read or written key goes first.
    """

    def __init__(self, max_items: int = 5000, max_memory_mb: int = 200):
        self.entries: "OrderedDict[str, str]" = OrderedDict()
        self.max_items = max_items
        self.max_bytes = max_memory_mb * 1024 * 1024
        self.size_bytes = 0
        self._lock = asyncio.Lock()

    @staticmethod
    def _payload_size(payload: str) -> int:
        return len(payload.encode("utf-8"))

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            payload = self.entries.get(key)
            if payload is not None:
                self.entries.move_to_end(key)
            return payload

    async def set(self, key: str, payload: str):
        size = self._payload_size(payload)
        if size > self.max_bytes:
            logger.debug(f"Payload for {key} exceeds the memory tier, not kept in memory")
            return

        async with self._lock:
            self._remove(key)
            self._evict_for(size)
            self.entries[key] = payload
            self.size_bytes += size

    async def delete(self, key: str):
        async with self._lock:
            self._remove(key)

    async def clear(self):
        async with self._lock:
            self.entries.clear()
            self.size_bytes = 0

    def _remove(self, key: str):
        payload = self.entries.pop(key, None)
        if payload is not None:
            self.size_bytes -= self._payload_size(payload)

    def _evict_for(self, incoming: int):
        while self.entries and (
            len(self.entries) >= self.max_items or self.size_bytes + incoming > self.max_bytes
        ):
            oldest, payload = self.entries.popitem(last=False)
            self.size_bytes -= self._payload_size(payload)
            logger.debug(f"Evicted from memory tier: {oldest}")

    def get_stats(self) -> dict:
        stats = {
            "items_count": len(self.entries),
            "size_mb": round(self.size_bytes / 1024 / 1024, 3),
            "max_items": self.max_items,
            "max_memory_mb": self.max_bytes / 1024 / 1024,
        }
        try:
            stats["process_memory_mb"] = round(psutil.Process().memory_info().rss / 1024 / 1024, 1)
        except psutil.Error:
            stats["process_memory_mb"] = "unavailable"
        return stats
