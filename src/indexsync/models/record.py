"""Product record models — the authoritative entity and its merge-patch form."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A product as held by the record store and mirrored into the index.

    ``id`` is assigned by the record store on first save and never changes
    afterwards. A product with a non-null ``id`` has been persisted at least once.
    """

    id: str | None = Field(default=None, description="Store-assigned identifier")
    name: str = Field(min_length=1, description="Product name")
    content: str | None = Field(default=None, description="Long-form description")
    created_date: datetime | None = Field(default=None, description="Set by the store on first save")
    last_modified_date: datetime | None = Field(default=None, description="Set by the store on every save")


class ProductPatch(BaseModel):
    """Merge-patch payload: only non-null fields overwrite the stored product."""

    id: str | None = None
    name: str | None = Field(default=None, min_length=1)
    content: str | None = None

    def changes(self) -> dict[str, Any]:
        """Return the fields this patch actually sets, excluding ``id``."""
        return {k: v for k, v in self.model_dump(exclude={"id"}).items() if v is not None}

    def apply_to(self, product: Product) -> Product:
        """Return a copy of *product* with this patch merged in."""
        return product.model_copy(update=self.changes())
