import asyncio
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from plenario.utils.duckdb_store import DuckDBKeyValueStore
from plenario.utils.memory_manager import BoundedLRUCache

logger = logging.getLogger(__name__)


class CacheManager:
    """Durable key/value store: bounded memory tier in front of Redis or a DuckDB file.

    Values must be JSON-compatible. No operation raises on backend trouble;
    reads degrade to a miss and writes report False.
    """

    def __init__(self, settings):
        self.settings = settings
        self.prefix = getattr(settings, 'cache_prefix', '')
        self.memory_cache = BoundedLRUCache(
            max_items=getattr(settings, 'cache_max_items', 5000),
            max_memory_mb=getattr(settings, 'cache_max_memory_mb', 200)
        )
        self.redis_client = None
        self.duckdb = None

        if settings.redis_url:
            try:
                self.redis_client = redis.from_url(settings.redis_url, decode_responses=True)
                logger.info(f"Redis cache connected: {settings.redis_url}")
            except Exception as e:
                logger.warning(f"Redis not available ({e}), using memory cache")
        elif getattr(settings, 'duckdb_path', None):
            try:
                self.duckdb = DuckDBKeyValueStore(settings.duckdb_path)
            except Exception as e:
                logger.warning(f"DuckDB store not available ({e}), using memory cache")

    @property
    def backend(self) -> str:
        if self.redis_client:
            return "redis"
        if self.duckdb:
            return "duckdb"
        return "memory"

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache, promoting backend hits to memory"""
        if not self.settings.cache_enabled:
            return None

        full_key = self._key(key)
        payload = await self.memory_cache.get(full_key)

        if payload is None:
            payload = await self._backend_get(full_key)
            if payload is not None:
                await self.memory_cache.set(full_key, payload)

        if payload is None:
            return None

        try:
            return json.loads(payload)
        except ValueError as e:
            logger.warning(f"Corrupt cache entry {key}: {e}")
            return None

    async def set(self, key: str, value: Any) -> bool:
        """Set value in cache; False when it could not be serialized or persisted"""
        if not self.settings.cache_enabled:
            return False

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache serialization failed for {key}: {e}")
            return False

        full_key = self._key(key)
        stored = await self._backend_set(full_key, payload)
        await self.memory_cache.set(full_key, payload)
        return stored

    async def delete(self, key: str):
        """Delete from cache"""
        full_key = self._key(key)
        if self.redis_client:
            try:
                await self.redis_client.delete(full_key)
            except Exception as e:
                logger.warning(f"Redis delete failed for {key}: {e}")
        elif self.duckdb:
            try:
                await asyncio.to_thread(self.duckdb.delete, full_key)
            except Exception as e:
                logger.warning(f"DuckDB delete failed for {key}: {e}")

        await self.memory_cache.delete(full_key)

    async def clear(self):
        """Clear every key under this store's prefix"""
        if self.redis_client:
            try:
                cursor = 0
                while True:
                    cursor, keys = await self.redis_client.scan(
                        cursor, match=f"{self.prefix}*"
                    )
                    if keys:
                        await self.redis_client.delete(*keys)
                    if cursor == 0:
                        break
            except Exception as e:
                logger.warning(f"Redis clear failed: {e}")
        elif self.duckdb:
            try:
                await asyncio.to_thread(self.duckdb.clear_prefix, self.prefix)
            except Exception as e:
                logger.warning(f"DuckDB clear failed: {e}")

        await self.memory_cache.clear()

    async def close(self):
        if self.redis_client:
            try:
                await self.redis_client.aclose()
            except Exception as e:
                logger.warning(f"Redis close failed: {e}")
        if self.duckdb:
            await asyncio.to_thread(self.duckdb.close)

    def get_stats(self) -> dict:
        stats = self.memory_cache.get_stats()
        stats["backend"] = self.backend
        return stats

    async def _backend_get(self, full_key: str) -> Optional[str]:
        if self.redis_client:
            try:
                return await self.redis_client.get(full_key)
            except Exception as e:
                logger.warning(f"Redis get failed ({e}), treating as miss")
        elif self.duckdb:
            try:
                return await asyncio.to_thread(self.duckdb.get, full_key)
            except Exception as e:
                logger.warning(f"DuckDB get failed ({e}), treating as miss")
        return None

    async def _backend_set(self, full_key: str, payload: str) -> bool:
        if self.redis_client:
            try:
                await self.redis_client.set(full_key, payload)
                return True
            except Exception as e:
                logger.warning(f"Redis set failed: {e}")
                return False
        if self.duckdb:
            try:
                await asyncio.to_thread(self.duckdb.set, full_key, payload)
                return True
            except Exception as e:
                logger.warning(f"DuckDB set failed: {e}")
                return False
        return True
