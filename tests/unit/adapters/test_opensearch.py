"""Tests for the OpenSearch index adapter."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from opensearchpy.exceptions import NotFoundError, RequestError

from indexsync.adapters.base.exceptions import ConnectionError, IndexWriteError, QueryError
from indexsync.adapters.opensearch.adapter import OpenSearchIndexAdapter
from indexsync.models.page import PageRequest
from indexsync.models.query import StructuredQuery, query_string
from indexsync.models.record import Product

# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def adapter() -> OpenSearchIndexAdapter:
    return OpenSearchIndexAdapter(
        hosts=["https://localhost:9200"],
        index_name="test-products",
        refresh="wait_for",
    )


@pytest.fixture
def mock_client(adapter: OpenSearchIndexAdapter) -> AsyncMock:
    client = AsyncMock()
    adapter._client = client
    return client


@pytest.fixture
def sample_hit() -> dict[str, Any]:
    """Sample OpenSearch hit for a product document."""
    return {
        "_index": "test-products",
        "_id": "p-001",
        "_score": 3.2,
        "_source": {
            "id": "p-001",
            "name": "Desk lamp",
            "content": "Brass arm",
            "created_date": "2024-06-15T08:30:00Z",
            "last_modified_date": "2024-06-16T09:00:00Z",
        },
    }


# ── Properties ───────────────────────────────────────────────────────────────


class TestOpenSearchAdapterProperties:
    def test_name(self, adapter: OpenSearchIndexAdapter) -> None:
        assert adapter.name == "opensearch"

    def test_default_hosts(self) -> None:
        a = OpenSearchIndexAdapter()
        assert a._hosts == ["https://localhost:9200"]
        assert a._index_name == "products"

    def test_custom_settings(self, adapter: OpenSearchIndexAdapter) -> None:
        assert adapter._index_name == "test-products"
        assert adapter._refresh == "wait_for"


# ── Initialization ───────────────────────────────────────────────────────────


class TestOpenSearchInitialization:
    async def test_initialize_creates_missing_index(self) -> None:
        client = MagicMock()
        client.info = AsyncMock(return_value={"cluster_name": "c1", "version": {"number": "2.11.0"}})
        client.indices.exists = AsyncMock(return_value=False)
        client.indices.create = AsyncMock()

        adapter = OpenSearchIndexAdapter(index_name="products", username="admin", password="secret")
        with patch("indexsync.adapters.opensearch.adapter.AsyncOpenSearch", return_value=client) as factory:
            await adapter.initialize()

        assert factory.call_args.kwargs["http_auth"] == ("admin", "secret")
        client.indices.create.assert_awaited_once()
        assert client.indices.create.call_args.kwargs["index"] == "products"

    async def test_initialize_keeps_existing_index(self) -> None:
        client = MagicMock()
        client.info = AsyncMock(return_value={})
        client.indices.exists = AsyncMock(return_value=True)
        client.indices.create = AsyncMock()

        with patch("indexsync.adapters.opensearch.adapter.AsyncOpenSearch", return_value=client):
            await OpenSearchIndexAdapter().initialize()

        client.indices.create.assert_not_awaited()

    async def test_initialize_unreachable_raises_connection_error(self) -> None:
        client = MagicMock()
        client.info = AsyncMock(side_effect=OSError("Connection refused"))

        with (
            patch("indexsync.adapters.opensearch.adapter.AsyncOpenSearch", return_value=client),
            pytest.raises(ConnectionError, match="Failed to connect"),
        ):
            await OpenSearchIndexAdapter().initialize()

    async def test_shutdown_closes_client(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        await adapter.shutdown()
        mock_client.close.assert_called_once()
        assert adapter._client is None


# ── Mutations ────────────────────────────────────────────────────────────────


class TestOpenSearchMutations:
    async def test_index_document(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        created = datetime(2024, 6, 15, 8, 30, tzinfo=UTC)
        await adapter.index_document(Product(id="p-001", name="Desk lamp", created_date=created))

        kwargs = mock_client.index.call_args.kwargs
        assert kwargs["index"] == "test-products"
        assert kwargs["id"] == "p-001"
        assert kwargs["refresh"] == "wait_for"
        assert kwargs["body"]["name"] == "Desk lamp"
        assert kwargs["body"]["created_date"] == "2024-06-15T08:30:00Z"

    async def test_index_failure_wrapped(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        mock_client.index.side_effect = RuntimeError("cluster red")
        with pytest.raises(IndexWriteError, match="p-001") as exc_info:
            await adapter.index_document(Product(id="p-001", name="Lamp"))
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_index_without_id_raises(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        with pytest.raises(IndexWriteError):
            await adapter.index_document(Product(name="Lamp"))
        mock_client.index.assert_not_called()

    async def test_delete_document(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        await adapter.delete_document("p-001")
        mock_client.delete.assert_awaited_once_with(index="test-products", id="p-001", refresh="wait_for")

    async def test_delete_missing_document_is_not_an_error(
        self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock
    ) -> None:
        mock_client.delete.side_effect = NotFoundError(404, "not_found", {"result": "not_found"})
        await adapter.delete_document("gone")

    async def test_delete_failure_wrapped(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        mock_client.delete.side_effect = RuntimeError("timeout")
        with pytest.raises(IndexWriteError):
            await adapter.delete_document("p-001")

    async def test_not_initialized_raises(self, adapter: OpenSearchIndexAdapter) -> None:
        with pytest.raises(ConnectionError, match="not initialized"):
            await adapter.delete_document("p-001")


# ── Search ───────────────────────────────────────────────────────────────────


class TestOpenSearchSearch:
    async def test_search_request_body(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        mock_client.search.return_value = {"hits": {"total": {"value": 0}, "hits": []}}
        await adapter.execute_query(query_string("lamp"), PageRequest(page=2, size=5))

        kwargs = mock_client.search.call_args.kwargs
        assert kwargs["index"] == "test-products"
        assert kwargs["body"] == {
            "query": {"query_string": {"query": "lamp"}},
            "from": 10,
            "size": 5,
            "track_total_hits": True,
        }

    async def test_search_sort_passed_through(self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock) -> None:
        mock_client.search.return_value = {"hits": {"total": {"value": 0}, "hits": []}}
        query = StructuredQuery(body={"match_all": {}}, sort=[{"created_date": "desc"}])
        await adapter.execute_query(query, PageRequest())
        assert mock_client.search.call_args.kwargs["body"]["sort"] == [{"created_date": "desc"}]

    async def test_search_returns_products(
        self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock, sample_hit: dict
    ) -> None:
        mock_client.search.return_value = {"hits": {"total": {"value": 1}, "hits": [sample_hit]}}
        page = await adapter.search_and_normalize(query_string("lamp"), PageRequest(size=10))

        assert page.total == 1
        product = page.content[0]
        assert product.id == "p-001"
        assert product.name == "Desk lamp"
        assert product.created_date == datetime(2024, 6, 15, 8, 30, tzinfo=UTC)

    async def test_search_legacy_integer_total(
        self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock, sample_hit: dict
    ) -> None:
        mock_client.search.return_value = {"hits": {"total": 7, "hits": [sample_hit]}}
        raw = await adapter.execute_query(query_string("lamp"), PageRequest())
        assert raw.total_hits == 7

    async def test_search_failure_keeps_engine_cause(
        self, adapter: OpenSearchIndexAdapter, mock_client: AsyncMock
    ) -> None:
        engine_error = RequestError(400, "search_phase_execution_exception", {})
        mock_client.search.side_effect = engine_error
        with pytest.raises(QueryError) as exc_info:
            await adapter.execute_query(query_string("name:"), PageRequest())
        assert exc_info.value.__cause__ is engine_error


# ── Health ───────────────────────────────────────────────────────────────────


class TestOpenSearchHealth:
    async def test_health_not_initialized(self, adapter: OpenSearchIndexAdapter) -> None:
        health = await adapter.health_check()
        assert health.status == "unhealthy"

    async def test_health_healthy(self, adapter: OpenSearchIndexAdapter) -> None:
        mock_client = MagicMock()
        mock_client.cluster = MagicMock()
        mock_client.cluster.health = AsyncMock(
            return_value={"status": "green", "cluster_name": "test-cluster", "number_of_nodes": 3}
        )
        adapter._client = mock_client

        health = await adapter.health_check()
        assert health.status == "healthy"
        assert "test-cluster" in (health.message or "")

    async def test_health_yellow_is_degraded(self, adapter: OpenSearchIndexAdapter) -> None:
        mock_client = MagicMock()
        mock_client.cluster.health = AsyncMock(return_value={"status": "yellow"})
        adapter._client = mock_client

        health = await adapter.health_check()
        assert health.status == "degraded"

    async def test_health_exception(self, adapter: OpenSearchIndexAdapter) -> None:
        mock_client = MagicMock()
        mock_client.cluster = MagicMock()
        mock_client.cluster.health = AsyncMock(side_effect=RuntimeError("Connection refused"))
        adapter._client = mock_client

        health = await adapter.health_check()
        assert health.status == "unhealthy"
