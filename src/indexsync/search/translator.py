"""Query translator — runs user search text against the index."""

from __future__ import annotations

import logging

from indexsync.adapters.base.adapter import IndexAdapter
from indexsync.models.page import Page, PageRequest
from indexsync.models.query import StructuredQuery, query_string
from indexsync.models.record import Product
from indexsync.search.errors import map_search_exception

logger = logging.getLogger(__name__)


class QueryTranslator:
    """Turns raw query text into a native query and executes it.

    Stateless between calls; one instance is shared by all requests.
    Execution failures go through :func:`map_search_exception` exactly once:
    a query the engine could not parse becomes ``QuerySyntaxError``, anything
    else is re-raised as it was.
    """

    def __init__(self, adapter: IndexAdapter) -> None:
        self._adapter = adapter

    async def search(self, query_text: str, page_request: PageRequest) -> Page[Product]:
        logger.debug("Searching products for query %r (page=%d, size=%d)", query_text, page_request.page, page_request.size)
        return await self.search_structured(query_string(query_text), page_request)

    async def search_structured(self, query: StructuredQuery, page_request: PageRequest) -> Page[Product]:
        """Execute a pre-built query and map the hits to products."""
        try:
            return await self._adapter.search_and_normalize(query, page_request)
        except Exception as e:
            mapped = map_search_exception(e)
            if mapped is e:
                raise
            raise mapped from e
