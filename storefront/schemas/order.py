# storefront/schemas/order.py
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.enums import OrderStatus
from storefront.schemas.address import AddressRead


class OrderItemRead(BaseModel):
    id: UUID
    product_id: UUID | None
    product_name: str
    product_sku: str
    unit_price: float
    discount: int | None = None
    quantity: int
    subtotal: float

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: UUID
    user_id: UUID
    status: OrderStatus
    total_amount: float
    items: List[OrderItemRead] = Field(default_factory=list)
    address: AddressRead | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderPage(BaseModel):
    total: int
    page: int
    pages: int
    items: List[OrderRead]
