"""Product business rules: create-or-reactivate, sparse update, soft/hard delete.

Every check-then-act sequence runs inside one transaction with the product
row locked (``SELECT ... FOR UPDATE``), so a concurrent purchase or a
concurrent create of the same name cannot slip between the check and the
write. A racing insert that still wins surfaces as a unique violation and is
reported as a duplicate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from pos_api.db.errors import (
    StoreError,
    StoreErrorKind,
    to_store_error,
    translate_store_errors,
)
from pos_api.db.models import Category, Product

logger = logging.getLogger(__name__)

# Fields applied by an update only when truthy; stock is deliberately absent
TRUTHY_UPDATE_FIELDS = ("name", "category_id", "price", "barcode")


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    DEACTIVATED = "deactivated"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class ProductServiceError(Exception):
    """Base class for rule violations reported to the caller."""


class DuplicateProductError(ProductServiceError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Product '{name}' already exists")
        self.name = name


class ProductNotFoundError(ProductServiceError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class CategoryNotFoundError(ProductServiceError):
    def __init__(self, category_id: str | None) -> None:
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


@dataclass
class BulkDeleteResult:
    product_id: str
    outcome: DeleteOutcome
    error: str | None = None


def list_active_products(db: Session) -> list[Product]:
    """Return active products with their category, newest first."""
    with translate_store_errors():
        query = (
            select(Product)
            .where(Product.active.is_(True))
            .options(joinedload(Product.category))
            .order_by(Product.created_at.desc(), Product.name)
        )
        return list(db.scalars(query).unique().all())


def list_categories(db: Session) -> list[Category]:
    with translate_store_errors():
        return list(db.scalars(select(Category).order_by(Category.name)).all())


def get_product(db: Session, product_id: str) -> Product:
    """Load one product (active or not) with its category."""
    with translate_store_errors():
        product = db.scalar(
            select(Product)
            .where(Product.id == product_id)
            .options(joinedload(Product.category))
        )
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def create_or_reactivate(
    db: Session,
    *,
    name: str,
    category_id: str,
    price: float,
    stock: int,
    barcode: str | None = None,
) -> Product:
    """Create a product, or bring a soft-deleted product of the same name back.

    Raises:
        DuplicateProductError: an active product already uses ``name``.
        CategoryNotFoundError: ``category_id`` does not exist.
        StoreError: any other database failure.
    """
    try:
        with translate_store_errors():
            existing = db.scalar(
                select(Product).where(Product.name == name).with_for_update()
            )
            if existing is not None and existing.active:
                raise DuplicateProductError(name)

            if db.get(Category, category_id) is None:
                raise CategoryNotFoundError(category_id)

            if existing is None:
                product = Product(
                    name=name,
                    category_id=category_id,
                    price=price,
                    stock=stock,
                    barcode=barcode,
                    active=True,
                )
                db.add(product)
                reactivated = False
            else:
                product = existing
                product.category_id = category_id
                product.price = price
                product.stock = stock
                if barcode is not None:
                    product.barcode = barcode
                product.active = True
                reactivated = True

            db.commit()
            db.refresh(product)
    except DuplicateProductError:
        db.rollback()
        logger.warning(f"Rejected duplicate product name {name!r}")
        raise
    except CategoryNotFoundError:
        db.rollback()
        raise
    except StoreError as e:
        db.rollback()
        if e.kind is StoreErrorKind.CONFLICT:
            logger.warning(f"Unique violation creating product {name!r}: {e}")
            raise DuplicateProductError(name) from e
        if e.kind is StoreErrorKind.NOT_FOUND:
            raise CategoryNotFoundError(category_id) from e
        logger.error(f"Database error creating product {name!r}: {e}", exc_info=True)
        raise

    if reactivated:
        logger.info(f"Reactivated product {product.id} ({name!r})")
    else:
        logger.info(f"Created product {product.id} ({name!r})")
    return product


def sparse_changes(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the fields an update is allowed to apply.

    ``name``, ``category_id``, ``price`` and ``barcode`` count only when
    truthy; ``active`` counts whenever it is given, so ``false`` deactivates.
    """
    changes = {key: fields[key] for key in TRUTHY_UPDATE_FIELDS if fields.get(key)}
    if fields.get("active") is not None:
        changes["active"] = fields["active"]
    return changes


def update_product(db: Session, product_id: str, fields: Mapping[str, Any]) -> Product:
    """Apply a partial update; an empty change set leaves the row untouched.

    Unlike the other fields, ``active`` is applied even when false, so an
    administrative update can deactivate a product as well as reactivate it.
    """
    changes = sparse_changes(fields)
    try:
        with translate_store_errors():
            product = db.get(Product, product_id, with_for_update=True)
            if product is None:
                raise ProductNotFoundError(product_id)

            category_id = changes.get("category_id")
            if category_id and db.get(Category, category_id) is None:
                raise CategoryNotFoundError(category_id)

            for key, value in changes.items():
                setattr(product, key, value)

            db.commit()
            db.refresh(product)
    except (ProductNotFoundError, CategoryNotFoundError):
        db.rollback()
        raise
    except StoreError as e:
        db.rollback()
        if e.kind is StoreErrorKind.CONFLICT:
            raise DuplicateProductError(changes.get("name", "")) from e
        if e.kind is StoreErrorKind.NOT_FOUND:
            raise CategoryNotFoundError(changes.get("category_id")) from e
        logger.error(
            f"Database error updating product {product_id}: {e}", exc_info=True
        )
        raise

    logger.info(f"Updated product {product_id} fields={sorted(changes)}")
    return product


def _remove(db: Session, product: Product) -> DeleteOutcome:
    """Deactivate a product with history, physically delete one without."""
    if product.has_history:
        product.active = False
        db.flush()
        return DeleteOutcome.DEACTIVATED
    db.delete(product)
    db.flush()
    return DeleteOutcome.DELETED


def _with_history():
    return (selectinload(Product.purchases), selectinload(Product.sales))


def delete_product(db: Session, product_id: str) -> DeleteOutcome:
    try:
        with translate_store_errors():
            product = db.scalar(
                select(Product)
                .where(Product.id == product_id)
                .options(*_with_history())
                .with_for_update()
            )
            if product is None:
                raise ProductNotFoundError(product_id)
            outcome = _remove(db, product)
            db.commit()
    except ProductNotFoundError:
        db.rollback()
        logger.warning(f"Delete requested for missing product {product_id}")
        raise
    except StoreError as e:
        db.rollback()
        logger.error(
            f"Database error deleting product {product_id}: {e}", exc_info=True
        )
        raise

    logger.info(f"Product {product_id} {outcome.value}")
    return outcome


def bulk_delete(db: Session, product_ids: Iterable[str]) -> list[BulkDeleteResult]:
    """Apply the single-delete rule to every id and report each outcome.

    Each product is removed inside its own savepoint, so a failure on one id
    is recorded and the rest still go through. All items are settled before
    this returns.
    """
    ids = list(dict.fromkeys(product_ids))
    results: list[BulkDeleteResult] = []
    try:
        with translate_store_errors():
            products = db.scalars(
                select(Product)
                .where(Product.id.in_(ids))
                .options(*_with_history())
                .with_for_update()
            ).all()
            found = {product.id: product for product in products}

            for product_id in ids:
                product = found.get(product_id)
                if product is None:
                    results.append(
                        BulkDeleteResult(product_id, DeleteOutcome.NOT_FOUND)
                    )
                    continue
                try:
                    with db.begin_nested():
                        outcome = _remove(db, product)
                except SQLAlchemyError as e:
                    error = to_store_error(e)
                    logger.error(
                        f"Bulk delete failed for product {product_id}: {error}",
                        exc_info=True,
                    )
                    results.append(
                        BulkDeleteResult(product_id, DeleteOutcome.FAILED, error.message)
                    )
                else:
                    results.append(BulkDeleteResult(product_id, outcome))

            db.commit()
    except StoreError as e:
        db.rollback()
        logger.error(f"Database error during bulk delete: {e}", exc_info=True)
        raise

    summary = {outcome.value: 0 for outcome in DeleteOutcome}
    for result in results:
        summary[result.outcome.value] += 1
    logger.info(f"Bulk delete of {len(ids)} product(s): {summary}")
    return results
