"""Base index adapter — Abstract interface for search engine connectors.

The search index is a derived copy of the record store. Every backend must
implement this interface to hold that copy. The adapter is responsible for:
  1. Storing a product document by id (idempotent upsert)
  2. Deleting a document by id (idempotent; unknown ids are not an error)
  3. Executing a structured query and returning ranked hits with a total
  4. Reporting health status
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from indexsync.adapters.base.conversions import DocumentConverter
from indexsync.models.page import Page, PageRequest
from indexsync.models.query import StructuredQuery
from indexsync.models.record import Product


class AdapterHealth(BaseModel):
    """Health status of an index adapter."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class RawResults(BaseModel):
    """Ranked hits from the backend before mapping back to products."""

    total_hits: int = Field(default=0, description="Total number of matching documents")
    documents: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Hits in rank order, each with '_id', '_score' and '_source'",
    )
    took_ms: int = Field(default=0, description="Backend query execution time in ms")


class IndexAdapter(ABC):
    """Abstract base class for search index adapters.

    All adapters must implement:
      - index_document(): Upsert a product document by id
      - delete_document(): Remove a document by id
      - execute_query(): Run a structured query for one page of hits
      - health_check(): Report adapter health status

    Mutations may be invoked from a background worker rather than the request
    that caused them, and may run twice for the same id; both operations are
    naturally idempotent. Adapters should be stateless per call so one client
    can be shared by concurrent requests.

    Args:
        converter: Record ⇄ document converter. Defaults to one built for
            :class:`Product`.
    """

    def __init__(self, converter: DocumentConverter | None = None) -> None:
        self.converter = converter or DocumentConverter(Product)

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name (e.g., 'opensearch', 'memory')."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the adapter (connections, index creation, etc.).

        Called once during application startup.
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Gracefully shut down the adapter and release its resources."""

    @abstractmethod
    async def index_document(self, product: Product) -> None:
        """Store or replace the document for ``product.id``.

        Raises:
            IndexWriteError: If the backend rejects the write.
        """

    @abstractmethod
    async def delete_document(self, record_id: str) -> None:
        """Remove the document for ``record_id`` if present.

        Raises:
            IndexWriteError: If the backend fails for a reason other than
                the document being absent.
        """

    @abstractmethod
    async def execute_query(self, query: StructuredQuery, page: PageRequest) -> RawResults:
        """Execute a structured query and return one page of ranked hits.

        Raises:
            QueryError: Wrapping the engine's own exception as ``__cause__``.
        """

    @abstractmethod
    async def health_check(self) -> AdapterHealth:
        """Check the health of the search backend."""

    def to_product(self, hit: dict[str, Any]) -> Product:
        """Map a single raw hit back to a :class:`Product`."""
        return self.converter.from_document(hit.get("_source", {}), doc_id=hit.get("_id"))

    async def search_and_normalize(self, query: StructuredQuery, page: PageRequest) -> Page[Product]:
        """Execute a query and map the hits to a page of products."""
        raw = await self.execute_query(query, page)
        return Page.of([self.to_product(hit) for hit in raw.documents], page, total=raw.total_hits)
