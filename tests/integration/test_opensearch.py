"""Integration tests for the OpenSearch index adapter and product service."""

from __future__ import annotations

import pytest

from indexsync.adapters.opensearch.adapter import OpenSearchIndexAdapter
from indexsync.errors import QuerySyntaxError
from indexsync.models.page import PageRequest
from indexsync.models.query import query_string
from indexsync.models.record import Product
from indexsync.service.products import ProductService
from indexsync.store.memory import InMemoryRecordStore
from indexsync.sync.dispatcher import KeyedDispatcher

pytestmark = [pytest.mark.integration]


@pytest.fixture
def os_service(opensearch_adapter: OpenSearchIndexAdapter, dispatcher: KeyedDispatcher) -> ProductService:
    return ProductService(store=InMemoryRecordStore(), adapter=opensearch_adapter, dispatcher=dispatcher)


class TestOpenSearchHealth:
    async def test_health_check(self, opensearch_adapter: OpenSearchIndexAdapter) -> None:
        health = await opensearch_adapter.health_check()
        assert health.status in ("healthy", "degraded")
        assert health.latency_ms >= 0


class TestOpenSearchRoundTrip:
    async def test_index_search_delete(self, opensearch_adapter: OpenSearchIndexAdapter) -> None:
        await opensearch_adapter.index_document(Product(id="p1", name="Desk lamp", content="Brass arm"))

        page = await opensearch_adapter.search_and_normalize(query_string("brass"), PageRequest())
        assert [p.id for p in page.content] == ["p1"]

        await opensearch_adapter.delete_document("p1")
        await opensearch_adapter.delete_document("p1")
        page = await opensearch_adapter.search_and_normalize(query_string("brass"), PageRequest())
        assert page.total == 0

    async def test_total_and_paging(self, opensearch_adapter: OpenSearchIndexAdapter) -> None:
        for n in range(3):
            await opensearch_adapter.index_document(Product(id=f"p{n}", name=f"Item {n}", content="hello"))

        raw = await opensearch_adapter.execute_query(query_string("hello"), PageRequest(page=0, size=10))
        assert raw.total_hits == 3
        assert len(raw.documents) == 3

        raw = await opensearch_adapter.execute_query(query_string("hello"), PageRequest(page=1, size=2))
        assert raw.total_hits == 3
        assert len(raw.documents) == 1


class TestOpenSearchService:
    async def test_malformed_query_maps_to_syntax_error(self, os_service: ProductService) -> None:
        with pytest.raises(QuerySyntaxError):
            await os_service.search("name:", PageRequest())

    async def test_update_then_delete_ends_absent(
        self, os_service: ProductService, dispatcher: KeyedDispatcher
    ) -> None:
        created = await os_service.create(Product(name="Desk lamp", content="old"))
        await os_service.update(created.model_copy(update={"content": "new"}))
        await os_service.delete(created.id)
        await dispatcher.flush()

        page = await os_service.search("lamp", PageRequest())
        assert page.total == 0
