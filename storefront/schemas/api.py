# storefront/schemas/api.py
"""Formato público de la API JSON de productos (/api/products)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel


class ApiProduct(BaseModel):
    id: UUID
    name: str
    slug: str
    sku: str
    short_description: str | None = None
    description: str | None = None
    image: str | None = None
    price: float
    discount_price: int | None = None
    stock: int
    category: str | None = None
    created_at: datetime

    @classmethod
    def from_product(cls, product) -> "ApiProduct":
        return cls(
            id=product.id,
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            short_description=product.short_description,
            description=product.description,
            image=product.image,
            price=float(product.price),
            discount_price=product.discount_price,
            stock=product.stock,
            category=product.category.name if product.category else None,
            created_at=product.created_at,
        )


class ApiEnvelope(BaseModel):
    status: Literal["success", "error"]
    message: str
    data: Any = None
