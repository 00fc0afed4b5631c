"""API test fixtures — app with an in-memory store and index."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from indexsync.api.app import create_app
from indexsync.config.settings import Settings
from indexsync.core.engine import IndexSyncEngine


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """Test client whose lifespan builds and initializes the engine."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def engine(client: TestClient) -> IndexSyncEngine:
    return client.app.state.engine  # type: ignore[attr-defined]


@pytest.fixture
def flush(client: TestClient, engine: IndexSyncEngine):
    """Wait for queued index mutations on the app's event loop."""

    def _flush() -> None:
        client.portal.call(engine.dispatcher.flush)  # type: ignore[union-attr]

    return _flush
