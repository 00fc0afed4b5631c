"""Tests for the cache manager."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, patch

import pytest

from indexsync.cache.manager import CacheManager
from indexsync.config.settings import CacheSettings


@pytest.fixture
def memory_cache() -> CacheManager:
    return CacheManager(CacheSettings(backend="memory", ttl=60))


class TestMemoryBackend:
    async def test_set_get_delete(self, memory_cache: CacheManager) -> None:
        await memory_cache.initialize()
        await memory_cache.set("k", {"name": "Lamp"})
        assert await memory_cache.get("k") == {"name": "Lamp"}

        await memory_cache.delete("k")
        assert await memory_cache.get("k") is None

    async def test_expired_entry_is_a_miss(self, memory_cache: CacheManager) -> None:
        await memory_cache.set("k", "v", ttl=5)
        assert await memory_cache.get("k") == "v"

        expires_at, value = memory_cache._memory_cache["k"]
        memory_cache._memory_cache["k"] = (expires_at - 10, value)
        assert await memory_cache.get("k") is None
        assert "k" not in memory_cache._memory_cache

    async def test_zero_ttl_never_expires(self, memory_cache: CacheManager) -> None:
        await memory_cache.set("k", "v", ttl=0)
        assert memory_cache._memory_cache["k"] == (None, "v")
        assert await memory_cache.get("k") == "v"

    async def test_default_ttl_from_settings(self, memory_cache: CacheManager) -> None:
        before = time.monotonic()
        await memory_cache.set("k", "v")
        expires_at, _ = memory_cache._memory_cache["k"]
        assert before + 60 <= expires_at <= time.monotonic() + 60

    async def test_clear(self, memory_cache: CacheManager) -> None:
        await memory_cache.set("a", 1)
        await memory_cache.set("b", 2)
        await memory_cache.clear()
        assert await memory_cache.get("a") is None


class TestRedisBackend:
    async def test_falls_back_to_memory_when_unreachable(self) -> None:
        client = AsyncMock()
        client.ping.side_effect = OSError("Connection refused")
        cache = CacheManager(CacheSettings(backend="redis"))

        with patch("indexsync.cache.manager.aioredis.from_url", return_value=client):
            await cache.initialize()

        assert cache.settings.backend == "memory"
        await cache.set("k", "v")
        assert await cache.get("k") == "v"

    async def test_values_stored_as_json_with_ttl(self) -> None:
        client = AsyncMock()
        cache = CacheManager(CacheSettings(backend="redis", ttl=30))
        with patch("indexsync.cache.manager.aioredis.from_url", return_value=client):
            await cache.initialize()

        await cache.set("k", {"name": "Lamp"})
        client.setex.assert_awaited_once_with("k", 30, '{"name": "Lamp"}')

        client.get.return_value = '{"name": "Lamp"}'
        assert await cache.get("k") == {"name": "Lamp"}

        await cache.shutdown()
        client.aclose.assert_awaited_once()

    async def test_redis_errors_are_misses(self) -> None:
        client = AsyncMock()
        client.get.side_effect = OSError("reset")
        cache = CacheManager(CacheSettings(backend="redis"))
        with patch("indexsync.cache.manager.aioredis.from_url", return_value=client):
            await cache.initialize()

        assert await cache.get("k") is None
