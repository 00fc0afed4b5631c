"""In-memory record store used for development and tests."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import UTC, datetime

from indexsync.models.page import Page, PageRequest
from indexsync.models.record import Product
from indexsync.store.base import RecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with a single write lock.

    Stored products are copied on the way in and out so callers never alias
    the store's own state.
    """

    def __init__(self) -> None:
        self._rows: dict[str, Product] = {}
        self._lock = asyncio.Lock()

    async def get_by_id(self, record_id: str) -> Product | None:
        row = self._rows.get(record_id)
        return row.model_copy() if row else None

    async def save(self, product: Product) -> Product:
        now = datetime.now(UTC)
        async with self._lock:
            if product.id is None:
                # Time-ordered ids, matching what the relational store generates.
                stored = product.model_copy(update={"id": str(uuid.uuid1()), "created_date": now})
            else:
                previous = self._rows.get(product.id)
                created = previous.created_date if previous else (product.created_date or now)
                stored = product.model_copy(update={"created_date": created})
            stored.last_modified_date = now
            self._rows[stored.id] = stored  # type: ignore[index]
        logger.debug("Saved product %s", stored.id)
        return stored.model_copy()

    async def exists_by_id(self, record_id: str) -> bool:
        return record_id in self._rows

    async def delete_by_id(self, record_id: str) -> None:
        async with self._lock:
            self._rows.pop(record_id, None)

    async def list_all(self, page_request: PageRequest) -> Page[Product]:
        rows = list(self._rows.values())
        start = page_request.offset
        content = [row.model_copy() for row in rows[start : start + page_request.size]]
        return Page.of(content, page_request, total=len(rows))

    def __len__(self) -> int:
        return len(self._rows)
