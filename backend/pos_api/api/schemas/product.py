"""Pydantic models describing Product payloads."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic.alias_generators import to_camel

from pos_api.services.products import DeleteOutcome

PositivePrice = Annotated[float, Field(gt=0, strict=True)]
PositiveStock = Annotated[int, Field(gt=0, strict=True)]


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON keys (``categoryId``, ``createdAt``)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProductPayload(CamelModel):
    """Shape check for create/update bodies; every field is optional here."""

    name: StrictStr | None = None
    price: PositivePrice | None = None
    stock: PositiveStock | None = None
    category_id: StrictStr | None = None
    barcode: StrictStr | None = None


class ProductUpdate(ProductPayload):
    active: StrictBool | None = None


class CategorySummary(CamelModel):
    id: str
    name: str


class CategoryRead(CategorySummary):
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductSummary(CamelModel):
    """Row shape used by the product grid."""

    id: str
    name: str
    price: float
    stock: int
    barcode: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: CategorySummary | None = None


class ProductDetail(ProductSummary):
    active: bool


class ProductRead(CamelModel):
    """Flat product record returned after create/update."""

    id: str
    name: str
    price: float
    stock: int
    barcode: str | None = None
    active: bool
    category_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductCatalog(CamelModel):
    products: list[ProductSummary]
    categories: list[CategoryRead]


class MessageResponse(BaseModel):
    message: str


class BulkDeleteRequest(BaseModel):
    ids: list[StrictStr]


class BulkDeleteItem(BaseModel):
    id: str
    outcome: DeleteOutcome
    error: str | None = None


class BulkDeleteResponse(BaseModel):
    message: str
    results: list[BulkDeleteItem]
