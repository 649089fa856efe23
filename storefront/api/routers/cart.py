from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_shopper
from storefront.core.logging import cart_logger
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.models.cart import Cart
from storefront.models.user import User
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartRead
from storefront.services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


def to_cart_read(cart: Cart) -> CartRead:
    data = CartRead.model_validate(cart)
    data.total = float(cart_service.compute_total(cart))
    return data


@router.get("", response_model=CartRead)
async def get_cart(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    cart = await cart_service.get_or_create_cart(db, current_user)
    await commit_async(db)
    return to_cart_read(cart)


@router.post("/add/{product_id}", response_model=CartRead, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    product_id: str,
    payload: CartItemAdd | None = None,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    user_id = str(current_user.id)
    try:
        product = await cart_service.get_product(db, product_id)
        cart = await cart_service.add_product(db, current_user, product, payload.quantity if payload else 1)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        cart_logger().warning(
            "Add to cart failed",
            extra={"user_id": user_id, "product_id": product_id},
        )
        raise
    return to_cart_read(cart)


@router.put("/items/{product_id}", response_model=CartRead)
async def update_cart_item(
    product_id: str,
    payload: CartItemUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    try:
        product = await cart_service.get_product(db, product_id)
        cart = await cart_service.update_quantity(db, current_user, product, payload.quantity)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return to_cart_read(cart)


@router.delete("/items/{product_id}", response_model=CartRead)
async def remove_cart_item(
    product_id: UUID,
    quantity: int | None = Query(default=None, description="Unidades a quitar; sin valor elimina la línea"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    try:
        cart = await cart_service.remove_product(db, current_user, product_id, quantity)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return to_cart_read(cart)
