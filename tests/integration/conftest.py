"""Integration test fixtures — a Docker-based OpenSearch node.

Expects a single-node cluster with security disabled, e.g.:

    docker run -d -p 9201:9200 -e discovery.type=single-node \
        -e DISABLE_SECURITY_PLUGIN=true opensearchproject/opensearch:2

Tests are skipped when the node is not reachable.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator

import httpx
import pytest

from indexsync.adapters.opensearch.adapter import OpenSearchIndexAdapter

OPENSEARCH_URL = "http://localhost:9201"
TEST_INDEX = "indexsync-test-products"


def _wait_for_service(url: str, timeout: float = 10.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=5)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(2)
    return False


@pytest.fixture(scope="session")
def opensearch_ready() -> str:
    """Ensure OpenSearch is running."""
    if not _wait_for_service(OPENSEARCH_URL):
        pytest.skip(f"OpenSearch not available at {OPENSEARCH_URL}")
    return OPENSEARCH_URL


@pytest.fixture
async def opensearch_adapter(opensearch_ready: str) -> AsyncIterator[OpenSearchIndexAdapter]:
    """Adapter over a freshly created index; writes refresh immediately."""
    async with httpx.AsyncClient(base_url=opensearch_ready, timeout=30) as client:
        await client.delete(f"/{TEST_INDEX}", params={"ignore_unavailable": "true"})

    adapter = OpenSearchIndexAdapter(hosts=[opensearch_ready], index_name=TEST_INDEX, refresh="true")
    await adapter.initialize()
    yield adapter
    await adapter.shutdown()
