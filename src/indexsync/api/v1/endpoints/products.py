"""Product endpoints — CRUD over the record store with index mirroring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request, Response, status

from indexsync.api.deps import get_engine, get_page_request, get_service
from indexsync.api.headers import entity_alert, pagination
from indexsync.core.engine import IndexSyncEngine
from indexsync.errors import ENTITY_NAME, NotFoundError, ValidationError
from indexsync.models.page import PageRequest
from indexsync.models.record import Product, ProductPatch
from indexsync.service.products import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


def _check_path_id(path_id: str, body_id: str | None) -> None:
    if body_id is None:
        raise ValidationError("Invalid id", ENTITY_NAME, "idnull")
    if body_id != path_id:
        raise ValidationError("Invalid ID", ENTITY_NAME, "idinvalid")


@router.post(
    "/products",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    responses={400: {"description": "The product already has an id (errorKey: idexists)"}},
)
async def create_product(
    response: Response,
    product: Product,
    service: ProductService = Depends(get_service),
    engine: IndexSyncEngine = Depends(get_engine),
) -> Product:
    """Store a new product and make it searchable."""
    logger.debug("REST request to save Product : %s", product)
    result = await service.create(product)
    response.headers["Location"] = f"/api/products/{result.id}"
    response.headers.update(entity_alert(engine.settings.server.client_app_name, "created", ENTITY_NAME, str(result.id)))
    return result


@router.put(
    "/products/{id}",
    response_model=Product,
    summary="Replace a product",
    responses={
        400: {"description": "Missing or mismatched id (errorKey: idnull, idinvalid)"},
        404: {"description": "No product with this id"},
    },
)
async def update_product(
    id: str,
    response: Response,
    product: Product,
    service: ProductService = Depends(get_service),
    engine: IndexSyncEngine = Depends(get_engine),
) -> Product:
    """Replace all fields of an existing product."""
    logger.debug("REST request to update Product : %s, %s", id, product)
    _check_path_id(id, product.id)
    result = await service.update(product)
    response.headers.update(entity_alert(engine.settings.server.client_app_name, "updated", ENTITY_NAME, id))
    return result


@router.patch(
    "/products/{id}",
    response_model=Product,
    summary="Partially update a product",
    description="Merge-patch: fields that are null or absent in the body are left unchanged.",
    responses={
        400: {"description": "Missing or mismatched id (errorKey: idnull, idinvalid)"},
        404: {"description": "No product with this id"},
    },
)
async def partial_update_product(
    id: str,
    response: Response,
    patch: ProductPatch = Body(...),
    service: ProductService = Depends(get_service),
    engine: IndexSyncEngine = Depends(get_engine),
) -> Product:
    logger.debug("REST request to partial update Product : %s, %s", id, patch)
    _check_path_id(id, patch.id)
    result = await service.partial_update(id, patch)
    if result is None:
        raise NotFoundError(id)
    response.headers.update(entity_alert(engine.settings.server.client_app_name, "updated", ENTITY_NAME, id))
    return result


@router.get("/products", response_model=list[Product], summary="List products")
async def list_products(
    request: Request,
    response: Response,
    page_request: PageRequest = Depends(get_page_request),
    service: ProductService = Depends(get_service),
) -> list[Product]:
    logger.debug("REST request to get a page of Products")
    page = await service.find_all(page_request)
    response.headers.update(pagination(request.url, page))
    return page.content


@router.get(
    "/products/{id}",
    response_model=Product,
    summary="Get a product",
    responses={404: {"description": "No product with this id"}},
)
async def get_product(id: str, service: ProductService = Depends(get_service)) -> Product:
    logger.debug("REST request to get Product : %s", id)
    product = await service.find_one(id)
    if product is None:
        raise NotFoundError(id)
    return product


@router.delete("/products/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a product")
async def delete_product(
    id: str,
    service: ProductService = Depends(get_service),
    engine: IndexSyncEngine = Depends(get_engine),
) -> Response:
    """Delete a product. Deleting an unknown id also returns 204."""
    logger.debug("REST request to delete Product : %s", id)
    await service.delete(id)
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=entity_alert(engine.settings.server.client_app_name, "deleted", ENTITY_NAME, id),
    )
