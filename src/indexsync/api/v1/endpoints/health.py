"""Health check endpoints — Service, index adapter and sync health."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from indexsync import __version__
from indexsync.adapters.base.adapter import AdapterHealth
from indexsync.api.deps import get_engine
from indexsync.core.engine import IndexSyncEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


# ── Response models ──────────────────────────────────────────────────────


class SyncStatus(BaseModel):
    """Index mirroring counters."""

    outstanding: int = Field(description="Index mutations queued or running")
    submitted: int = Field(description="Index mutations submitted since startup")
    completed: int = Field(description="Index mutations applied")
    retried: int = Field(description="Retry attempts made")
    failed: int = Field(description="Index mutations abandoned after all retries")
    recent_failures: list[str] = Field(default_factory=list, description="Most recent failure messages")


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="indexsync server version")
    service: str = Field(description="Service name ('indexsync')")
    index_adapter: str = Field(description="Name of the configured index adapter")
    sync: SyncStatus = Field(description="Index mirroring status")


class IndexHealthResponse(BaseModel):
    """Per-adapter health check response."""

    adapters: dict[str, AdapterHealth] = Field(description="Map of adapter name to its health status")


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse, summary="System Health Check")
async def health_check(engine: IndexSyncEngine = Depends(get_engine)) -> HealthResponse:
    """Basic health check with index sync counters.

    Reports ``degraded`` while recent index mutations have been abandoned,
    since the index may be missing or showing stale products.
    """
    dispatcher = engine.dispatcher
    stats = dispatcher.stats
    failures = dispatcher.failures
    return HealthResponse(
        status="degraded" if failures else "healthy",
        version=__version__,
        service="indexsync",
        index_adapter=engine.settings.index.adapter,
        sync=SyncStatus(
            outstanding=dispatcher.outstanding,
            submitted=stats.submitted,
            completed=stats.completed,
            retried=stats.retried,
            failed=stats.failed,
            recent_failures=[str(f) for f in failures[-10:]],
        ),
    )


@router.get("/health/index", response_model=IndexHealthResponse, summary="Index Health Check")
async def index_health(engine: IndexSyncEngine = Depends(get_engine)) -> IndexHealthResponse:
    """Check health of the search index adapters."""
    return IndexHealthResponse(adapters=await engine.adapter_registry.health_check_all())
