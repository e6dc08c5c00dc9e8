"""Product API endpoints.

Public reads (listing, detail, search) and admin mutations.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.schemas import (
    ErrorResponse,
    ProductCreateRequest,
    ProductDeleteResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdateRequest,
)
from app.application.catalog_service import CatalogService
from app.infrastructure.config import settings

router = APIRouter(prefix="/products", tags=["Products"])


# ============================================================================
# Dependencies
# ============================================================================


async def get_service(request: Request) -> AsyncIterator[CatalogService]:
    """Get catalog service bound to a request-scoped session."""
    state = request.app.state
    async with state.db.session() as session:
        yield CatalogService(
            session,
            images=state.images,
            cache=state.listing_cache,
            timeout=settings.db_timeout_seconds,
        )


ServiceDep = Annotated[CatalogService, Depends(get_service)]


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="All products, newest first. With ?search= only names containing the text (any case).",
)
async def list_products(
    service: ServiceDep,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> ProductListResponse:
    """List or search products."""
    if search is not None and search.strip():
        products = await service.search_products(search)
    else:
        products = await service.list_products()

    return ProductListResponse(
        items=[ProductResponse.from_product(p) for p in products],
        total=len(products),
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get product",
)
async def get_product(product_id: str, service: ServiceDep) -> ProductResponse:
    """Get a product by id."""
    product = await service.get_product(product_id)
    return ProductResponse.from_product(product)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Create product",
    description="Create a product. Upload the image first and pass its reference as image_path.",
)
async def create_product(
    body: ProductCreateRequest,
    service: ServiceDep,
) -> ProductResponse:
    """Create a product."""
    product = await service.create_product(body.model_dump())
    return ProductResponse.from_product(product)


@router.patch(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update product",
    description="Change only the supplied fields.",
)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    service: ServiceDep,
) -> ProductResponse:
    """Partially update a product."""
    product = await service.update_product(
        product_id, body.model_dump(exclude_unset=True)
    )
    return ProductResponse.from_product(product)


@router.delete(
    "/{product_id}",
    response_model=ProductDeleteResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Delete product",
    description="Delete a product and, best-effort, its stored image.",
)
async def delete_product(product_id: str, service: ServiceDep) -> ProductDeleteResponse:
    """Delete a product."""
    result = await service.delete_product(product_id)
    return ProductDeleteResponse(
        id=result.product_id,
        deleted=True,
        image_removed=result.image_removed,
    )
