"""API Router — Product, search and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from indexsync.api.v1.endpoints.health import router as health_router
from indexsync.api.v1.endpoints.products import router as products_router
from indexsync.api.v1.endpoints.search import router as search_router

router = APIRouter()
router.include_router(products_router)
router.include_router(search_router)
router.include_router(health_router)
