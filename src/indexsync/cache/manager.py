"""Cache Manager — Redis-backed caching for single-record lookups.

Provides a unified get/set/delete interface over Redis or process memory with
a configurable TTL. Cache failures are never fatal: a failed read is a miss
and a failed write is skipped, since the record store stays authoritative.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import redis.asyncio as aioredis

from indexsync.config.settings import CacheSettings

logger = logging.getLogger(__name__)


class CacheManager:
    """Manages cached values for indexsync components.

    Attributes:
        settings: Cache configuration.
    """

    def __init__(self, settings: CacheSettings) -> None:
        self.settings = settings
        self._client: Any = None
        # key -> (expires_at, value); expires_at of None never expires
        self._memory_cache: dict[str, tuple[float | None, Any]] = {}

    async def initialize(self) -> None:
        """Initialize the cache backend."""
        if self.settings.backend == "redis":
            try:
                self._client = aioredis.from_url(self.settings.redis_url, decode_responses=True)
                await self._client.ping()
                logger.info("Connected to Redis cache at %s", self.settings.redis_url)
            except Exception:
                logger.warning("Failed to connect to Redis, falling back to memory cache", exc_info=True)
                self._client = None
                self.settings.backend = "memory"
        else:
            logger.info("Using in-memory cache backend")

    async def shutdown(self) -> None:
        """Close cache connections."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(self, key: str) -> Any | None:
        """Retrieve a value from cache.

        Returns:
            Cached value or None if missing or expired.
        """
        try:
            if self.settings.backend == "redis" and self._client:
                value = await self._client.get(key)
                return json.loads(value) if value else None
            entry = self._memory_cache.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and expires_at <= time.monotonic():
                self._memory_cache.pop(key, None)
                return None
            return value
        except Exception:
            logger.debug("Cache get failed for key: %s", key, exc_info=True)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value in cache.

        Args:
            key: Cache key.
            value: Value to cache (must be JSON-serializable for Redis).
            ttl: Time-to-live in seconds. Defaults to ``settings.ttl``; 0 means no expiry.
        """
        ttl = self.settings.ttl if ttl is None else ttl
        try:
            if self.settings.backend == "redis" and self._client:
                serialized = json.dumps(value, default=str)
                if ttl:
                    await self._client.setex(key, ttl, serialized)
                else:
                    await self._client.set(key, serialized)
            else:
                expires_at = time.monotonic() + ttl if ttl else None
                self._memory_cache[key] = (expires_at, value)
        except Exception:
            logger.debug("Cache set failed for key: %s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        """Delete a value from cache."""
        try:
            if self.settings.backend == "redis" and self._client:
                await self._client.delete(key)
            else:
                self._memory_cache.pop(key, None)
        except Exception:
            logger.debug("Cache delete failed for key: %s", key, exc_info=True)

    async def clear(self) -> None:
        """Clear all cached values."""
        try:
            if self.settings.backend == "redis" and self._client:
                await self._client.flushdb()
            else:
                self._memory_cache.clear()
        except Exception:
            logger.debug("Cache clear failed", exc_info=True)
