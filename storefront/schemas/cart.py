# storefront/schemas/cart.py
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.enums import CartStatus
from storefront.schemas.address import AddressRead
from storefront.schemas.product import ProductSummary


# Sin restricciones de rango: las cantidades inválidas las rechaza el servicio.
class CartItemAdd(BaseModel):
    quantity: int = 1


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemRead(BaseModel):
    id: UUID
    product_id: UUID | None
    product: ProductSummary | None = None
    quantity: int
    line_total: float

    model_config = ConfigDict(from_attributes=True)


class CartRead(BaseModel):
    id: UUID
    user_id: UUID
    status: CartStatus
    items: List[CartItemRead] = Field(default_factory=list)
    address: AddressRead | None = None
    total: float = 0

    created_at: datetime
    updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
