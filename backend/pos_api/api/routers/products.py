"""CRUD endpoints for the product catalog of the point-of-sale app."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from pos_api.api.dependencies.db import get_session
from pos_api.api.schemas.product import (
    BulkDeleteItem,
    BulkDeleteRequest,
    BulkDeleteResponse,
    CategoryRead,
    MessageResponse,
    ProductCatalog,
    ProductDetail,
    ProductPayload,
    ProductRead,
    ProductSummary,
    ProductUpdate,
)
from pos_api.core.messages import message
from pos_api.db.errors import StoreError
from pos_api.services import products as product_service
from pos_api.services.products import (
    CategoryNotFoundError,
    DeleteOutcome,
    DuplicateProductError,
    ProductNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_CREATE_FIELDS = ("name", "categoryId", "price", "stock")


def _internal_error(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e),
    )


def _invalid_data(e: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"{message('invalid_data')}: {e}",
    )


@router.get(
    "/",
    summary="List active products",
    response_model=list[ProductSummary] | ProductCatalog,
)
async def list_products(
    include_categories: bool = Query(
        False, description="Also return the full category list"
    ),
    db: Session = Depends(get_session),
) -> list[ProductSummary] | ProductCatalog:
    """Return every active product with its category for the POS grid.

    Soft-deleted products (active=False) are never listed.
    """
    try:
        products = [
            ProductSummary.model_validate(p)
            for p in product_service.list_active_products(db)
        ]
        if include_categories:
            categories = [
                CategoryRead.model_validate(c)
                for c in product_service.list_categories(db)
            ]
            return ProductCatalog(products=products, categories=categories)
        return products
    except StoreError as e:
        logger.error(f"Database error listing products: {e}", exc_info=True)
        raise _internal_error(e) from e


@router.get(
    "/{product_id}",
    summary="Fetch a single product",
    response_model=ProductDetail,
)
async def get_product(
    product_id: str,
    db: Session = Depends(get_session),
) -> ProductDetail:
    """Return one product, including inactive ones."""
    try:
        product = product_service.get_product(db, product_id)
        return ProductDetail.model_validate(product)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=message("product_not_found"),
        ) from e
    except StoreError as e:
        logger.error(f"Database error fetching product {product_id}: {e}", exc_info=True)
        raise _internal_error(e) from e


@router.post(
    "/",
    summary="Create a product (or reactivate a deleted one)",
    status_code=status.HTTP_201_CREATED,
    response_model=ProductRead,
)
async def create_product(
    body: dict[str, Any] = Body(...),
    db: Session = Depends(get_session),
) -> ProductRead:
    """Persist a product from the POS form.

    If a deactivated product with the same name exists it is reactivated
    and updated in place, keeping its id.
    """
    if any(not body.get(field) for field in REQUIRED_CREATE_FIELDS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message("required_fields"),
        )
    try:
        payload = ProductPayload.model_validate(body)
    except ValidationError as e:
        raise _invalid_data(e) from e

    try:
        product = product_service.create_or_reactivate(
            db,
            name=payload.name,
            category_id=payload.category_id,
            price=payload.price,
            stock=payload.stock,
            barcode=payload.barcode,
        )
        return ProductRead.model_validate(product)
    except DuplicateProductError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message("product_exists"),
        ) from e
    except CategoryNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message("category_not_found"),
        ) from e
    except StoreError as e:
        raise _internal_error(e) from e


@router.put(
    "/{product_id}",
    summary="Update an existing product",
    response_model=ProductRead,
)
async def update_product(
    product_id: str,
    body: dict[str, Any] | None = Body(None),
    db: Session = Depends(get_session),
) -> ProductRead:
    """Partial update. Stock is managed through purchases and sales, not here."""
    try:
        payload = ProductUpdate.model_validate(body or {})
    except ValidationError as e:
        raise _invalid_data(e) from e

    try:
        product = product_service.update_product(
            db, product_id, payload.model_dump(exclude_none=True)
        )
        return ProductRead.model_validate(product)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=message("product_not_found"),
        ) from e
    except CategoryNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=message("category_not_found"),
        ) from e
    except DuplicateProductError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message("product_exists"),
        ) from e
    except StoreError as e:
        raise _internal_error(e) from e


@router.delete(
    "/{product_id}",
    summary="Delete a product (soft delete when it has history)",
    response_model=MessageResponse,
)
async def delete_product(
    product_id: str,
    db: Session = Depends(get_session),
) -> MessageResponse:
    """Deactivate products referenced by purchases or sales, remove the rest."""
    try:
        outcome = product_service.delete_product(db, product_id)
    except ProductNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=message("product_not_found"),
        ) from e
    except StoreError as e:
        raise _internal_error(e) from e

    if outcome is DeleteOutcome.DEACTIVATED:
        return MessageResponse(message=message("product_deactivated"))
    return MessageResponse(message=message("product_deleted"))


async def _bulk_delete(body: dict[str, Any], db: Session) -> BulkDeleteResponse:
    try:
        request = BulkDeleteRequest.model_validate(body)
    except ValidationError as e:
        raise _invalid_data(e) from e

    try:
        results = product_service.bulk_delete(db, request.ids)
    except StoreError as e:
        raise _internal_error(e) from e

    return BulkDeleteResponse(
        message=message("product_deleted"),
        results=[
            BulkDeleteItem(id=r.product_id, outcome=r.outcome, error=r.error)
            for r in results
        ],
    )


@router.post(
    "/bulk-delete",
    summary="Delete several products",
    response_model=BulkDeleteResponse,
)
async def bulk_delete_products(
    body: dict[str, Any] = Body(...),
    db: Session = Depends(get_session),
) -> BulkDeleteResponse:
    """Apply the single-delete rule to every id and report each outcome."""
    return await _bulk_delete(body, db)


@router.delete(
    "/",
    summary="Delete several products",
    response_model=BulkDeleteResponse,
)
async def delete_products(
    body: dict[str, Any] = Body(...),
    db: Session = Depends(get_session),
) -> BulkDeleteResponse:
    """Same as ``POST /bulk-delete`` for clients that send a DELETE with a body."""
    return await _bulk_delete(body, db)
