"""Product operations spanning the record store and the search index."""

from indexsync.service.products import ProductService

__all__ = ["ProductService"]
