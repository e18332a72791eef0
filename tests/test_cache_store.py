"""
Tests for the durable key/value store (memory tier and DuckDB backend).
"""

import pytest

from plenario.utils.cache import CacheManager
from plenario.utils.memory_manager import BoundedLRUCache


class TestMemoryBackend:
    """Memory-only store used when no Redis URL or DuckDB path is configured."""

    async def test_get_after_set_returns_value(self, settings):
        store = CacheManager(settings)

        assert await store.set("lista_partidos", [{"sigla": "PT"}]) is True
        assert await store.get("lista_partidos") == [{"sigla": "PT"}]
        assert store.backend == "memory"

    async def test_missing_key_is_none(self, settings):
        store = CacheManager(settings)

        assert await store.get("never_written") is None

    async def test_overwrite_replaces_value(self, settings):
        store = CacheManager(settings)

        await store.set("key", {"v": 1})
        await store.set("key", {"v": 2})

        assert await store.get("key") == {"v": 2}

    async def test_disabled_store_reads_nothing_and_reports_failed_writes(self, make_settings):
        store = CacheManager(make_settings(cache_enabled=False))

        assert await store.set("key", 1) is False
        assert await store.get("key") is None

    async def test_unserializable_value_is_not_stored(self, settings):
        store = CacheManager(settings)

        assert await store.set("key", {"bad": object()}) is False
        assert await store.get("key") is None

    async def test_corrupt_payload_reads_as_miss(self, settings):
        store = CacheManager(settings)
        await store.memory_cache.set(f"{settings.cache_prefix}broken", "{not json")

        assert await store.get("broken") is None

    async def test_delete_and_clear(self, settings):
        store = CacheManager(settings)
        await store.set("a", 1)
        await store.set("b", 2)

        await store.delete("a")
        assert await store.get("a") is None

        await store.clear()
        assert await store.get("b") is None


class TestDuckDBBackend:
    """DuckDB file keeps entries across store instances."""

    async def test_entries_survive_a_new_store_instance(self, make_settings, tmp_path):
        settings = make_settings(duckdb_path=str(tmp_path / "cache" / "plenario.duckdb"))

        first = CacheManager(settings)
        assert first.backend == "duckdb"
        await first.set("despesas_42_2023", [{"type": "COMBUSTÍVEIS", "value": 10.5}])
        await first.close()

        second = CacheManager(settings)
        try:
            assert await second.get("despesas_42_2023") == [{"type": "COMBUSTÍVEIS", "value": 10.5}]
        finally:
            await second.close()

    async def test_clear_only_removes_own_prefix(self, make_settings, tmp_path):
        path = str(tmp_path / "shared.duckdb")
        store = CacheManager(make_settings(duckdb_path=path, cache_prefix="a:"))
        try:
            await store.set("k", 1)
            store.duckdb.set("b:k", "2")

            await store.clear()

            assert await store.get("k") is None
            assert store.duckdb.get("b:k") == "2"
        finally:
            await store.close()

    async def test_stats_report_backend(self, make_settings, tmp_path):
        store = CacheManager(make_settings(duckdb_path=str(tmp_path / "stats.duckdb")))
        try:
            await store.set("k", [1, 2, 3])
            stats = store.get_stats()
        finally:
            await store.close()

        assert stats["backend"] == "duckdb"
        assert stats["items_count"] == 1


class TestBoundedLRUCache:
    """Eviction of the in-process tier."""

    async def test_evicts_least_recently_used(self):
        lru = BoundedLRUCache(max_items=2, max_memory_mb=1)
        await lru.set("a", "1")
        await lru.set("b", "2")
        await lru.get("a")
        await lru.set("c", "3")

        assert "a" in lru
        assert "b" not in lru
        assert "c" in lru

    @pytest.mark.parametrize("count", [1, 5])
    async def test_stats_count_items(self, count):
        lru = BoundedLRUCache(max_items=10, max_memory_mb=1)
        for i in range(count):
            await lru.set(f"k{i}", "v")

        assert lru.get_stats()["items_count"] == count
