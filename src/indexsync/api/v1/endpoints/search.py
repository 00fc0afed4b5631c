"""Search endpoint — full-text search over the product index.

The query text is handed to the engine's ``query_string`` parser unchanged.
Text the engine cannot parse yields a 400 with ``errorKey: querySyntaxError``;
any other failure is an internal error whose details stay in the server log.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from indexsync.api.deps import get_page_request, get_service
from indexsync.api.headers import pagination
from indexsync.errors import AppError
from indexsync.models.page import PageRequest
from indexsync.models.record import Product
from indexsync.service.products import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.get(
    "/_search/products",
    response_model=list[Product],
    summary="Search products",
    description=(
        "Search the product index with the search engine's query string syntax, "
        "e.g. `lamp`, `name:lamp`, `\"desk lamp\" -floor`.\n\n"
        "Results come from the index, which may briefly lag behind recent writes."
    ),
    responses={
        400: {"description": "The query could not be parsed (errorKey: querySyntaxError)"},
        500: {"description": "Search backend failure"},
    },
)
async def search_products(
    request: Request,
    response: Response,
    query: str = Query(description="Query string"),
    page_request: PageRequest = Depends(get_page_request),
    service: ProductService = Depends(get_service),
) -> list[Product]:
    logger.debug("REST request to search for a page of Products for query %s", query)
    try:
        page = await service.search(query, page_request)
    except AppError:
        raise
    except Exception as e:
        logger.error("Search failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Search processing failed") from e

    response.headers.update(pagination(request.url, page))
    return page.content
