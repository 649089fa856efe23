from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Security
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_user
from storefront.db.session_async import get_async_db
from storefront.models.user import User
from storefront.schemas.order import OrderRead
from storefront.services import order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderRead])
async def list_my_orders(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["orders:read"]),
):
    return await order_service.list_orders_for_user(db, current_user.id)


@router.get("/{order_id}", response_model=OrderRead)
async def get_my_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["orders:read"]),
):
    return await order_service.get_order(db, order_id, user_id=current_user.id)
