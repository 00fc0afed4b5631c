"""OpenSearch adapter — Holds the product index in OpenSearch (v2+).

OpenSearch is an AWS-maintained fork of Elasticsearch with a compatible
query DSL and API surface, so the same adapter works against either engine's
REST API. It uses the async ``opensearch-py`` client::

    pip install "opensearch-py[async]"
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

from opensearchpy import AsyncOpenSearch
from opensearchpy.exceptions import NotFoundError

from indexsync.adapters.base.adapter import AdapterHealth, IndexAdapter, RawResults
from indexsync.adapters.base.conversions import DocumentConverter
from indexsync.adapters.base.exceptions import ConnectionError, IndexWriteError, QueryError
from indexsync.models.page import PageRequest
from indexsync.models.query import StructuredQuery
from indexsync.models.record import Product

logger = logging.getLogger(__name__)

_DEFAULT_MAPPING: dict[str, Any] = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "name": {"type": "text"},
            "content": {"type": "text"},
            "created_date": {"type": "date"},
            "last_modified_date": {"type": "date"},
        }
    }
}


class OpenSearchIndexAdapter(IndexAdapter):
    """Index adapter for OpenSearch (v2+).

    Args:
        hosts: List of OpenSearch node URLs.
        index_name: Index holding the product documents.
        username: Optional HTTP basic-auth username.
        password: Optional HTTP basic-auth password.
        verify_certs: Whether to verify TLS certificates.
        refresh: Refresh policy passed on writes (``"false"``, ``"true"`` or
            ``"wait_for"``). ``"false"`` leaves visibility to the engine's
            refresh interval.
        mapping: Index settings/mappings used when the index does not exist.
        converter: Record ⇄ document converter.
        **kwargs: Additional keyword arguments forwarded to ``AsyncOpenSearch``.
    """

    def __init__(
        self,
        hosts: list[str] | None = None,
        index_name: str = "products",
        username: str | None = None,
        password: str | None = None,
        verify_certs: bool = True,
        refresh: str = "false",
        mapping: dict[str, Any] | None = None,
        converter: DocumentConverter | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(converter)
        self._hosts = hosts or ["https://localhost:9200"]
        self._index_name = index_name
        self._username = username
        self._password = password
        self._verify_certs = verify_certs
        self._refresh = refresh
        self._mapping = mapping or _DEFAULT_MAPPING
        self._extra_kwargs = kwargs
        self._client: Any = None

    @property
    def name(self) -> str:
        return "opensearch"

    async def initialize(self) -> None:
        """Create the ``AsyncOpenSearch`` client and ensure the index exists."""
        client_kwargs: dict[str, Any] = {
            "hosts": self._hosts,
            "verify_certs": self._verify_certs,
            "ssl_show_warn": False,
        }
        if self._username and self._password:
            client_kwargs["http_auth"] = (self._username, self._password)

        client_kwargs.update(self._extra_kwargs)

        try:
            self._client = AsyncOpenSearch(**client_kwargs)
            info = await self._client.info()
            version = info.get("version", {}).get("number", "unknown")
            cluster = info.get("cluster_name", "unknown")
            logger.info("Connected to OpenSearch cluster: %s (v%s)", cluster, version)

            if not await self._client.indices.exists(index=self._index_name):
                await self._client.indices.create(index=self._index_name, body=self._mapping)
                logger.info("Created index %s", self._index_name)
        except Exception as e:
            raise ConnectionError(f"Failed to connect to OpenSearch: {e}") from e

    async def shutdown(self) -> None:
        """Close the OpenSearch client."""
        if self._client:
            await self._client.close()
            self._client = None

    def _require_client(self) -> Any:
        if not self._client:
            raise ConnectionError("OpenSearch client not initialized.")
        return self._client

    # ── Mutations ────────────────────────────────────────────────────────

    async def index_document(self, product: Product) -> None:
        """Upsert the product document under its id."""
        client = self._require_client()
        if product.id is None:
            raise IndexWriteError("Cannot index a product without an id.")

        try:
            await client.index(
                index=self._index_name,
                id=product.id,
                body=self.converter.to_document(product),
                refresh=self._refresh,
            )
        except Exception as e:
            raise IndexWriteError(f"Failed to index document '{product.id}': {e}") from e
        logger.debug("Indexed document %s", product.id)

    async def delete_document(self, record_id: str) -> None:
        """Delete a document by id; a missing document is not an error."""
        client = self._require_client()
        try:
            await client.delete(index=self._index_name, id=record_id, refresh=self._refresh)
        except NotFoundError:
            logger.debug("Document %s already absent from index", record_id)
            return
        except Exception as e:
            raise IndexWriteError(f"Failed to delete document '{record_id}': {e}") from e
        logger.debug("Deleted document %s", record_id)

    # ── Search ───────────────────────────────────────────────────────────

    async def execute_query(self, query: StructuredQuery, page: PageRequest) -> RawResults:
        """Execute a structured query for one page of hits."""
        client = self._require_client()

        body: dict[str, Any] = {
            "query": query.body,
            "from": page.offset,
            "size": page.size,
            "track_total_hits": True,
        }
        if query.sort:
            body["sort"] = query.sort

        try:
            start = time.monotonic()
            response = await client.search(index=self._index_name, body=body)
            took_ms = int((time.monotonic() - start) * 1000)
        except Exception as e:
            raise QueryError(f"OpenSearch query failed: {e}") from e

        hits = response.get("hits", {})
        total = hits.get("total", {})
        # Older clusters report a bare integer.
        total_hits = total.get("value", 0) if isinstance(total, dict) else int(total or 0)

        return RawResults(
            total_hits=total_hits,
            documents=list(hits.get("hits", [])),
            took_ms=took_ms,
        )

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Check OpenSearch cluster health."""
        if not self._client:
            return AdapterHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            health = await self._client.cluster.health()
            latency_ms = int((time.monotonic() - start) * 1000)

            status_map = {"green": "healthy", "yellow": "degraded", "red": "unhealthy"}

            return AdapterHealth(
                status=status_map.get(health.get("status", "red"), "unhealthy"),
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Cluster: {health.get('cluster_name')}, Nodes: {health.get('number_of_nodes')}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))
