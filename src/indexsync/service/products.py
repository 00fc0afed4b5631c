"""Product service — authoritative writes mirrored into the search index.

Every mutation goes to the record store first and only then to the index. The
store write is synchronous and its failures propagate; the index write is
best-effort:

  - ``create`` waits for its index write so a new product is searchable when
    the call returns, but an index failure is only logged.
  - ``update``, ``partial_update`` and ``delete`` hand their index write to the
    :class:`KeyedDispatcher` and return immediately.

Re-index mutations read the product back from the store when they run rather
than capturing it at submit time, so the index always converges on the
store's latest state even if several writes for one id are queued.
"""

from __future__ import annotations

import asyncio
import logging

from indexsync.adapters.base.adapter import IndexAdapter
from indexsync.cache.keys import PrefixedKeyGenerator
from indexsync.cache.manager import CacheManager
from indexsync.errors import ENTITY_NAME, IndexSyncFailure, NotFoundError, ValidationError
from indexsync.models.page import Page, PageRequest
from indexsync.models.query import StructuredQuery
from indexsync.models.record import Product, ProductPatch
from indexsync.search.translator import QueryTranslator
from indexsync.store.base import RecordStore
from indexsync.sync.dispatcher import KeyedDispatcher

logger = logging.getLogger(__name__)

_CACHE_NAMESPACE = "product"


class ProductService:
    """Create, update, delete and search products.

    Args:
        store: Authoritative record store.
        adapter: Search index adapter.
        dispatcher: Per-id ordered executor for index mutations.
        cache: Optional cache for :meth:`find_one`.
        key_generator: Cache key builder; defaults to the process-wide prefix.
    """

    def __init__(
        self,
        store: RecordStore,
        adapter: IndexAdapter,
        dispatcher: KeyedDispatcher,
        cache: CacheManager | None = None,
        key_generator: PrefixedKeyGenerator | None = None,
    ) -> None:
        self._store = store
        self._adapter = adapter
        self._dispatcher = dispatcher
        self._cache = cache
        self._keys = key_generator or (PrefixedKeyGenerator() if cache is not None else None)
        self.translator = QueryTranslator(adapter)

    # ── Writes ───────────────────────────────────────────────────────────

    async def create(self, product: Product) -> Product:
        """Store a new product and index it.

        Raises:
            ValidationError: If the product already has an id.
        """
        logger.debug("Request to save Product : %s", product)
        if product.id is not None:
            raise ValidationError("A new product cannot already have an ID", ENTITY_NAME, "idexists")

        stored = await self._store.save(product)
        record_id = str(stored.id)
        done = await self._dispatcher.submit(record_id, "index", lambda: self._reindex(record_id))
        failure = await _outcome(done, record_id)
        if failure is not None:
            logger.warning("Product %s was saved but is not searchable yet: %s", stored.id, failure)
        return stored

    async def update(self, product: Product) -> Product:
        """Replace an existing product and queue its re-index.

        Raises:
            ValidationError: If the product has no id.
            NotFoundError: If no product with that id is stored.
        """
        logger.debug("Request to update Product : %s", product)
        if product.id is None:
            raise ValidationError("Invalid id", ENTITY_NAME, "idnull")
        record_id = product.id
        if not await self._store.exists_by_id(record_id):
            raise NotFoundError(record_id)

        stored = await self._store.save(product)
        await self._evict(record_id)
        await self._dispatcher.submit(record_id, "index", lambda: self._reindex(record_id))
        return stored

    async def partial_update(self, record_id: str, patch: ProductPatch) -> Product | None:
        """Merge the non-null fields of ``patch`` into a stored product.

        Returns:
            The merged product, or None if no product has this id (the index
            is left untouched in that case).
        """
        logger.debug("Request to partially update Product %s : %s", record_id, patch)
        existing = await self._store.get_by_id(record_id)
        if existing is None:
            return None

        stored = await self._store.save(patch.apply_to(existing))
        await self._evict(record_id)
        await self._dispatcher.submit(record_id, "index", lambda: self._reindex(record_id))
        return stored

    async def delete(self, record_id: str) -> None:
        """Delete a product, then queue removal of its index document.

        Deleting an unknown id is not an error.
        """
        logger.debug("Request to delete Product : %s", record_id)
        await self._store.delete_by_id(record_id)
        await self._evict(record_id)
        await self._dispatcher.submit(record_id, "delete", lambda: self._adapter.delete_document(record_id))

    async def _reindex(self, record_id: str) -> None:
        current = await self._store.get_by_id(record_id)
        if current is None:
            # Deleted after this mutation was queued.
            await self._adapter.delete_document(record_id)
        else:
            await self._adapter.index_document(current)

    # ── Reads ────────────────────────────────────────────────────────────

    async def find_one(self, record_id: str) -> Product | None:
        logger.debug("Request to get Product : %s", record_id)
        key = self._cache_key(record_id)
        if key is not None:
            cached = await self._cache.get(key)  # type: ignore[union-attr]
            if cached is not None:
                return Product.model_validate(cached)

        product = await self._store.get_by_id(record_id)
        if product is not None and key is not None:
            await self._cache.set(key, product.model_dump(mode="json"))  # type: ignore[union-attr]
        return product

    async def find_all(self, page_request: PageRequest) -> Page[Product]:
        logger.debug("Request to get all Products")
        return await self._store.list_all(page_request)

    async def search(self, query: str, page_request: PageRequest) -> Page[Product]:
        """Full-text search over the index; never touches the record store.

        Raises:
            QuerySyntaxError: If the engine cannot parse ``query``.
        """
        logger.debug("Request to search for a page of Products for query %s", query)
        return await self.translator.search(query, page_request)

    async def search_structured(self, query: StructuredQuery, page_request: PageRequest) -> Page[Product]:
        return await self.translator.search_structured(query, page_request)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _cache_key(self, record_id: str) -> str | None:
        if self._cache is None or self._keys is None:
            return None
        return self._keys.generate(_CACHE_NAMESPACE, record_id)

    async def _evict(self, record_id: str) -> None:
        key = self._cache_key(record_id)
        if key is not None:
            await self._cache.delete(key)  # type: ignore[union-attr]


async def _outcome(done: asyncio.Future[IndexSyncFailure | None], record_id: str) -> IndexSyncFailure | None:
    # A job cancelled by dispatcher shutdown counts as not indexed, not as
    # cancellation of the calling task.
    await asyncio.wait([done])
    if done.cancelled():
        return IndexSyncFailure("index", record_id, 0)
    return done.result()
