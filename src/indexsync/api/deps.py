"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from fastapi import Query

from indexsync.core.engine import IndexSyncEngine
from indexsync.models.page import PageRequest
from indexsync.service.products import ProductService

# Global engine instance (set during application lifespan)
_engine: IndexSyncEngine | None = None


def set_engine(engine: IndexSyncEngine | None) -> None:
    """Set the global engine instance (called during app lifespan)."""
    global _engine
    _engine = engine


def get_engine() -> IndexSyncEngine:
    """Get the global engine instance.

    Raises:
        RuntimeError: If the engine is not initialized.
    """
    if _engine is None:
        raise RuntimeError("indexsync engine not initialized. Is the server running?")
    return _engine


def get_service() -> ProductService:
    return get_engine().service


def get_page_request(
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    size: int = Query(default=20, ge=1, le=1000, description="Page size"),
) -> PageRequest:
    return PageRequest(page=page, size=size)
