"""indexsync Engine — Owns and wires the runtime components.

The engine manages the component lifecycle:
  1. Key prefix: computed once from build metadata
  2. Cache: Redis or in-memory record cache
  3. Index adapter: created through the adapter registry from settings
  4. Dispatcher: per-id ordered executor for index mutations
  5. Service: product operations over the store and the index

Shutdown runs in reverse: queued index mutations are drained before the
adapter's connections are closed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from indexsync.adapters.base.registry import AdapterRegistry, default_registry
from indexsync.cache.keys import PrefixedKeyGenerator, init_key_prefix
from indexsync.cache.manager import CacheManager
from indexsync.service.products import ProductService
from indexsync.store.base import RecordStore
from indexsync.store.memory import InMemoryRecordStore
from indexsync.sync.dispatcher import KeyedDispatcher

if TYPE_CHECKING:
    from indexsync.adapters.base.adapter import IndexAdapter
    from indexsync.config.settings import Settings

logger = logging.getLogger(__name__)


class IndexSyncEngine:
    """Runtime container for the record store, index and product service.

    Attributes:
        settings: Application configuration.
        store: Authoritative record store.
        adapter_registry: Registry of index adapters.
        dispatcher: Index mutation dispatcher.
        cache: Record cache, or None when disabled.
        service: Product service; available after :meth:`initialize`.
    """

    def __init__(
        self,
        settings: Settings,
        store: RecordStore | None = None,
        adapter_registry: AdapterRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or InMemoryRecordStore()
        self.adapter_registry = adapter_registry or default_registry()
        self.dispatcher = KeyedDispatcher(
            max_attempts=settings.sync.max_attempts,
            initial_backoff=settings.sync.initial_backoff,
            max_backoff=settings.sync.max_backoff,
            queue_size=settings.sync.queue_size,
            failure_history=settings.sync.failure_history,
        )
        self.cache = CacheManager(settings.cache) if settings.cache.enabled else None
        self._service: ProductService | None = None

    @property
    def service(self) -> ProductService:
        if self._service is None:
            raise RuntimeError("indexsync engine not initialized. Call initialize() first.")
        return self._service

    @property
    def adapter(self) -> IndexAdapter:
        return self.adapter_registry.get(self.settings.index.adapter)

    def _adapter_kwargs(self) -> dict[str, Any]:
        cfg = self.settings.index
        kwargs: dict[str, Any] = {"index_name": cfg.index_name}
        if cfg.adapter == "opensearch":
            if cfg.hosts:
                kwargs["hosts"] = cfg.hosts
            if cfg.username:
                kwargs["username"] = cfg.username
            if cfg.password:
                kwargs["password"] = cfg.password
            kwargs["verify_certs"] = cfg.verify_certs
            kwargs["refresh"] = cfg.refresh
        kwargs.update(cfg.extra)
        return kwargs

    async def initialize(self) -> None:
        """Initialize cache, index adapter and service."""
        prefix = init_key_prefix(self.settings.build)

        if self.cache is not None:
            await self.cache.initialize()

        adapter = await self.adapter_registry.initialize_adapter(self.settings.index.adapter, **self._adapter_kwargs())

        self._service = ProductService(
            store=self.store,
            adapter=adapter,
            dispatcher=self.dispatcher,
            cache=self.cache,
            key_generator=PrefixedKeyGenerator(prefix),
        )
        logger.info("indexsync engine initialized (index adapter: %s)", adapter.name)

    async def shutdown(self) -> None:
        """Drain pending index mutations, then release connections."""
        await self.dispatcher.shutdown()
        await self.adapter_registry.shutdown_all()
        if self.cache is not None:
            await self.cache.shutdown()
        self._service = None
        logger.info("indexsync engine shut down")
