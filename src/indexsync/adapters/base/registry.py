"""Index adapter registry.

Maps a backend name from ``settings.index.adapter`` to an adapter class and
owns the adapter built from it for the lifetime of the engine.
"""

from __future__ import annotations

import logging
from typing import Any

from indexsync.adapters.base.adapter import AdapterHealth, IndexAdapter

logger = logging.getLogger(__name__)


class AdapterNotFoundError(Exception):
    """Raised for a backend name that is not registered or not started."""


class AdapterRegistry:
    """Backend name to adapter class, plus the adapters started from them."""

    def __init__(self) -> None:
        self._classes: dict[str, type[IndexAdapter]] = {}
        self._live: dict[str, IndexAdapter] = {}

    def register(self, name: str, adapter_class: type[IndexAdapter]) -> None:
        if name in self._classes:
            logger.warning("Replacing index adapter registered as %s", name)
        self._classes[name] = adapter_class

    def __contains__(self, name: object) -> bool:
        return name in self._classes

    @property
    def names(self) -> list[str]:
        """Registered backend names, in registration order."""
        return list(self._classes)

    async def initialize_adapter(self, name: str, **kwargs: Any) -> IndexAdapter:
        """Build the ``name`` adapter from ``kwargs`` and connect it.

        Raises:
            AdapterNotFoundError: If ``name`` is not registered.
        """
        try:
            adapter_class = self._classes[name]
        except KeyError:
            raise AdapterNotFoundError(
                f"Unknown index adapter '{name}' (choose from: {', '.join(self._classes)})"
            ) from None

        adapter = adapter_class(**kwargs)
        await adapter.initialize()
        self._live[name] = adapter
        logger.info("Index adapter %s ready", name)
        return adapter

    def get(self, name: str) -> IndexAdapter:
        if name not in self._live:
            raise AdapterNotFoundError(f"Index adapter '{name}' is not initialized")
        return self._live[name]

    async def health_check_all(self) -> dict[str, AdapterHealth]:
        """Health of every started adapter; a failing check reports unhealthy."""
        results: dict[str, AdapterHealth] = {}
        for name, adapter in self._live.items():
            try:
                results[name] = await adapter.health_check()
            except Exception as e:
                results[name] = AdapterHealth(status="unhealthy", message=str(e))
        return results

    async def shutdown_all(self) -> None:
        while self._live:
            name, adapter = self._live.popitem()
            try:
                await adapter.shutdown()
            except Exception:
                logger.warning("Index adapter %s did not shut down cleanly", name, exc_info=True)


def default_registry() -> AdapterRegistry:
    """Registry holding the in-memory and OpenSearch adapters."""
    from indexsync.adapters.memory.adapter import MemoryIndexAdapter
    from indexsync.adapters.opensearch.adapter import OpenSearchIndexAdapter

    registry = AdapterRegistry()
    registry.register("memory", MemoryIndexAdapter)
    registry.register("opensearch", OpenSearchIndexAdapter)
    return registry
