"""Record store interface.

The record store owns product identity: it alone assigns ``id`` values, and
every read that matters for business logic goes through it rather than the
search index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from indexsync.models.page import Page, PageRequest
from indexsync.models.record import Product


class RecordStore(ABC):
    """Abstract authoritative store for products, keyed by id.

    Implementations serialize concurrent writes to the same id themselves
    (row locking or last-writer-wins); callers rely on that.
    """

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Product | None:
        """Return the stored product, or None if the id is unknown."""

    @abstractmethod
    async def save(self, product: Product) -> Product:
        """Insert or replace a product.

        Assigns an id when ``product.id`` is None and stamps the audit dates.

        Returns:
            The product as stored.
        """

    @abstractmethod
    async def exists_by_id(self, record_id: str) -> bool:
        """Return True if a product with this id is stored."""

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> None:
        """Remove a product. Deleting an unknown id is a no-op."""

    @abstractmethod
    async def list_all(self, page_request: PageRequest) -> Page[Product]:
        """Return one page of all stored products in insertion order."""
