# storefront/schemas/product.py
from __future__ import annotations

from datetime import date, datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.domain.enums import ProductSort, StockAvailability
from storefront.schemas.category import CategoryBrief


class ProductBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    sku: str = Field(..., min_length=1, max_length=64)
    category_id: UUID | None = None
    short_description: str | None = Field(None, max_length=500)
    description: str | None = None
    image: str | None = Field(None, max_length=512)
    price: float = Field(..., ge=0)
    discount_price: int | None = Field(None, ge=1, le=99, description="Porcentaje de descuento")
    stock: int = Field(0, ge=0)
    active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    sku: str | None = Field(None, min_length=1, max_length=64)
    category_id: UUID | None = None
    short_description: str | None = Field(None, max_length=500)
    description: str | None = None
    image: str | None = Field(None, max_length=512)
    price: float | None = Field(None, ge=0)
    discount_price: int | None = Field(None, ge=1, le=99)
    stock: int | None = Field(None, ge=0)
    active: bool | None = None

    @field_validator("name", "sku", "price", "stock", "active")
    @classmethod
    def reject_null(cls, v):
        # Columnas NOT NULL: se pueden omitir pero no enviar en null
        if v is None:
            raise ValueError("field cannot be null")
        return v


class ProductRead(ProductBase):
    id: UUID
    slug: str
    category: CategoryBrief | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductSummary(BaseModel):
    id: UUID
    name: str
    slug: str
    sku: str
    price: float
    discount_price: int | None = None
    stock: int
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PaginatedProducts(BaseModel):
    total: int
    page: int
    pages: int
    limit: int
    items: List[ProductRead]


class ProductSearch(BaseModel):
    """Criterios de búsqueda del catálogo. Todos opcionales."""

    name: str | None = None
    sku: str | None = None
    short_description: str | None = None
    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    availability: StockAvailability | None = None
    on_sale: bool | None = None
    category_id: UUID | None = None
    is_active: bool | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort: ProductSort | None = None

    @model_validator(mode="after")
    def check_ranges(self) -> "ProductSearch":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot be greater than max_price")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date cannot be after end_date")
        return self
