import logging
import time
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError

from plenario.models.domain import CacheEntry
from plenario.utils.cache import CacheManager

logger = logging.getLogger(__name__)


class CacheService:
    """Timestamped envelopes and read-through caching on top of the durable store"""

    def __init__(self, cache_manager: CacheManager, clock: Callable[[], float] = time.time):
        self.cache = cache_manager
        self.clock = clock

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Read an envelope; anything unreadable counts as a miss"""
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cache envelope {key}: {e}")
            return None

    def is_fresh(self, entry: CacheEntry, ttl: float) -> bool:
        """ttl == 0 never expires"""
        if ttl == 0:
            return True
        return self.clock() - entry.timestamp < ttl

    async def get_fresh(self, key: str, ttl: float) -> Optional[Any]:
        entry = await self.get_entry(key)
        if entry is not None and self.is_fresh(entry, ttl):
            logger.debug(f"Cache hit: {key}")
            return entry.data
        return None

    async def put(self, key: str, data: Any) -> bool:
        entry = CacheEntry(data=data, timestamp=self.clock())
        stored = await self.cache.set(key, entry.model_dump(mode="json"))
        if not stored:
            logger.debug(f"Cache write not persisted for {key}")
        return stored

    async def with_cache(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: float,
        stale_on_error: bool = False,
    ) -> Optional[Any]:
        """
        Read-through cache for a single fetcher call.

        Returns cached data while fresh, otherwise calls fetcher once and stores
        its result. Returns None when the fetcher fails (or the expired entry when
        stale_on_error is set and one exists). None means "unavailable now", not
        "empty".
        """
        entry = await self.get_entry(key)
        if entry is not None and self.is_fresh(entry, ttl):
            logger.debug(f"Cache hit: {key}")
            return entry.data

        logger.debug(f"Cache miss: {key}")
        try:
            result = await fetcher()
        except Exception as e:
            logger.error(f"Fetch error for {key}: {e}")
            if stale_on_error and entry is not None:
                logger.warning(f"Serving stale entry for {key}")
                return entry.data
            return None

        await self.put(key, result)
        return result
