"""Data models — Products, pages and structured queries."""

from indexsync.models.page import Page, PageRequest
from indexsync.models.query import StructuredQuery, query_string
from indexsync.models.record import Product, ProductPatch

__all__ = ["Page", "PageRequest", "Product", "ProductPatch", "StructuredQuery", "query_string"]
