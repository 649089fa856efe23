from __future__ import annotations

import uuid
from math import ceil
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import order_logger
from storefront.db.operations import flush_async
from storefront.domain.enums import OrderStatus
from storefront.models.order import OrderShop
from storefront.services.exceptions import ResourceNotFoundError


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ResourceNotFoundError("Order not found") from exc


async def list_orders_for_user(db: AsyncSession, user_id: uuid.UUID) -> Sequence[OrderShop]:
    stmt = (
        select(OrderShop)
        .where(OrderShop.user_id == user_id)
        .order_by(OrderShop.created_at.desc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_order(db: AsyncSession, order_id: str | uuid.UUID, *, user_id: uuid.UUID | None = None) -> OrderShop:
    """Fetch an order; with ``user_id`` the order must belong to that user."""
    order = await db.get(OrderShop, _as_uuid(order_id))
    if not order or (user_id is not None and order.user_id != user_id):
        raise ResourceNotFoundError("Order not found")
    return order


async def paginate_orders(db: AsyncSession, *, page: int, per_page: int) -> tuple[Sequence[OrderShop], int, int]:
    total = (await db.execute(select(func.count()).select_from(OrderShop))).scalar_one()
    pages = ceil(total / per_page) if total else 1
    stmt = (
        select(OrderShop)
        .order_by(OrderShop.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    result = await db.execute(stmt)
    return result.scalars().all(), total, pages


async def latest_orders(db: AsyncSession, limit: int) -> Sequence[OrderShop]:
    result = await db.execute(select(OrderShop).order_by(OrderShop.created_at.desc()).limit(limit))
    return result.scalars().all()


async def update_status(db: AsyncSession, order: OrderShop, status: OrderStatus, *, changed_by: uuid.UUID | None = None) -> OrderShop:
    previous = order.status
    order.status = status
    await flush_async(db)
    order_logger().info(
        "Order status changed",
        extra={
            "order_id": str(order.id),
            "old_status": previous.value,
            "new_status": status.value,
            "changed_by": str(changed_by) if changed_by else None,
        },
    )
    return order
