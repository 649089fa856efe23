from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_shopper
from storefront.api.routers.cart import to_cart_read
from storefront.core.logging import order_logger
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.models.user import User
from storefront.schemas.address import AddressDraftFields, AddressPayload, AddressRead
from storefront.schemas.cart import CartRead
from storefront.schemas.checkout import AddressDraft, CheckoutSummary
from storefront.schemas.order import OrderRead
from storefront.services import checkout_service
from storefront.services.email_service import send_order_confirmation

router = APIRouter(prefix="/checkout", tags=["checkout"])


async def _summary(db: AsyncSession, user: User) -> CheckoutSummary:
    cart, address, total = await checkout_service.get_summary(db, user)
    return CheckoutSummary(
        cart=to_cart_read(cart),
        address=AddressRead.model_validate(address),
        total=float(total),
    )


@router.get("/address", response_model=AddressDraft)
async def get_address(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    source, address = await checkout_service.get_address_draft(db, current_user)
    return AddressDraft(
        source=source,
        address=AddressDraftFields.model_validate(address) if address is not None else None,
    )


@router.post("/address", response_model=CartRead)
async def save_address(
    payload: AddressPayload,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    try:
        cart = await checkout_service.save_address(db, current_user, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return to_cart_read(cart)


@router.get("/summary", response_model=CheckoutSummary)
async def summary(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    return await _summary(db, current_user)


@router.get("/confirm", response_model=CheckoutSummary)
async def confirm_preview(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    return await _summary(db, current_user)


@router.post("/confirm", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def confirm(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_shopper),
):
    user_id = str(current_user.id)
    try:
        order = await checkout_service.confirm_checkout(db, current_user)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        order_logger().warning("Checkout confirmation failed", extra={"user_id": user_id})
        raise

    send_order_confirmation(order, current_user.email)
    return order
