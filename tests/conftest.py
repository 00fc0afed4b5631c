"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from indexsync.adapters.memory.adapter import MemoryIndexAdapter
from indexsync.cache import keys
from indexsync.config.settings import Settings
from indexsync.models.record import Product
from indexsync.service.products import ProductService
from indexsync.store.memory import InMemoryRecordStore
from indexsync.sync.dispatcher import KeyedDispatcher


@pytest.fixture(autouse=True)
def _reset_key_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    """Each test starts without a process-wide cache key prefix."""
    monkeypatch.setattr(keys, "_prefix", None)


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance: in-memory backends, no retry delay."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        index={"adapter": "memory", "index_name": "products"},
        sync={"max_attempts": 3, "initial_backoff": 0, "max_backoff": 0},
        cache={"enabled": True, "backend": "memory"},
        build={"git_commit": "abc1234"},
        observability={"log_level": "warning", "log_format": "console"},
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
async def adapter() -> AsyncIterator[MemoryIndexAdapter]:
    a = MemoryIndexAdapter(index_name="products")
    await a.initialize()
    yield a
    await a.shutdown()


@pytest.fixture
async def dispatcher() -> AsyncIterator[KeyedDispatcher]:
    d = KeyedDispatcher(max_attempts=3, initial_backoff=0, max_backoff=0)
    yield d
    await d.shutdown(timeout=1.0)


@pytest.fixture
def service(store: InMemoryRecordStore, adapter: MemoryIndexAdapter, dispatcher: KeyedDispatcher) -> ProductService:
    return ProductService(store=store, adapter=adapter, dispatcher=dispatcher)


@pytest.fixture
def lamp() -> Product:
    """A new, unsaved product."""
    return Product(name="Desk lamp", content="A small lamp with a brass arm.")
