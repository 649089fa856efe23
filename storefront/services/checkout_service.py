from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import order_logger, payment_logger, stock_logger
from storefront.core.metrics import record_order_placed
from storefront.db.operations import flush_async
from storefront.domain.enums import CartStatus, OrderStatus
from storefront.models.cart import Cart, CartAddress
from storefront.models.order import OrderAddress, OrderItem, OrderShop
from storefront.models.product import Product
from storefront.models.user import CustomerProfile, User
from storefront.schemas.address import AddressPayload
from storefront.services import cart_service
from storefront.services.exceptions import (
    ConflictError,
    EmptyCartError,
    InsufficientStockError,
    MissingAddressError,
)

ADDRESS_FIELDS = ("primary_address", "secondary_address", "city", "state", "postal_code", "country")


async def _require_cart(db: AsyncSession, user: User) -> Cart:
    cart = await cart_service.get_active_cart(db, user)
    if not cart or not cart.items:
        order_logger().warning("Checkout attempted with empty cart", extra={"user_id": str(user.id)})
        raise EmptyCartError("Your cart is empty.")
    return cart


def _require_address(cart: Cart, user: User) -> CartAddress:
    if cart.address is None:
        order_logger().warning(
            "Checkout attempted without address",
            extra={"user_id": str(user.id), "cart_id": str(cart.id)},
        )
        raise MissingAddressError("A shipping address is required before checkout.")
    return cart.address


async def save_address(db: AsyncSession, user: User, payload: AddressPayload) -> Cart:
    """Create or replace the address of the user's active, non-empty cart."""
    cart = await _require_cart(db, user)
    data = payload.model_dump()
    if cart.address is None:
        db.add(CartAddress(cart_id=cart.id, **data))
    else:
        for field, value in data.items():
            setattr(cart.address, field, value)

    await flush_async(db)
    order_logger().info("Checkout address saved", extra={"user_id": str(user.id), "cart_id": str(cart.id)})
    stmt = select(Cart).where(Cart.id == cart.id).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalar_one()


async def get_address_draft(db: AsyncSession, user: User) -> tuple[str, object | None]:
    """Return ``(source, address)``: the cart address, else the profile one, else nothing."""
    cart = await cart_service.get_active_cart(db, user)
    if cart and cart.address is not None:
        return "cart", cart.address

    result = await db.execute(select(CustomerProfile).where(CustomerProfile.user_id == user.id))
    profile = result.scalar_one_or_none()
    if profile and profile.primary_address:
        return "profile", profile
    return "none", None


async def get_summary(db: AsyncSession, user: User) -> tuple[Cart, CartAddress, Decimal]:
    cart = await _require_cart(db, user)
    address = _require_address(cart, user)
    return cart, address, cart_service.compute_total(cart)


async def confirm_checkout(db: AsyncSession, user: User) -> OrderShop:
    """Turn the active cart into an order.

    Every line is validated before anything is written, so a failure leaves
    stock, cart and orders untouched. Product rows are locked for the
    duration of the transaction where the backend supports it. The caller
    owns the commit.
    """
    logger = order_logger()
    cart = await _require_cart(db, user)
    address = _require_address(cart, user)

    # Las líneas cuyo producto fue eliminado no se ordenan, igual que en el total.
    lines = [item for item in cart.items if item.product_id is not None]
    if len(lines) < len(cart.items):
        logger.warning(
            "Cart lines without product skipped at checkout",
            extra={"user_id": str(user.id), "cart_id": str(cart.id), "skipped": len(cart.items) - len(lines)},
        )
    if not lines:
        raise EmptyCartError("Your cart is empty.")

    product_ids = [item.product_id for item in lines]
    locked = await db.execute(
        select(Product)
        .where(Product.id.in_(product_ids))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    products = {product.id: product for product in locked.scalars().all()}

    # 1) validar todo
    for item in lines:
        product = products.get(item.product_id)
        if product is None or not product.active:
            logger.warning(
                "Checkout aborted: product no longer available",
                extra={"user_id": str(user.id), "cart_item_id": str(item.id)},
            )
            raise ConflictError("A product in your cart is no longer available.")
        if item.quantity > product.stock:
            stock_logger().warning(
                "Checkout aborted: insufficient stock",
                extra={
                    "user_id": str(user.id),
                    "product_id": str(product.id),
                    "requested": item.quantity,
                    "available": product.stock,
                },
            )
            raise InsufficientStockError(f"Not enough stock for product: {product.name}")

    # 2) materializar la orden
    order = OrderShop(user_id=user.id, status=OrderStatus.pending, total_amount=Decimal("0"))
    order.address = OrderAddress(**{field: getattr(address, field) for field in ADDRESS_FIELDS})

    total = Decimal("0")
    for item in lines:
        product = products[item.product_id]
        unit_price = Decimal(str(product.price))
        subtotal = unit_price * item.quantity
        order.items.append(
            OrderItem(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                unit_price=unit_price,
                discount=product.discount_price,
                quantity=item.quantity,
                subtotal=subtotal,
            )
        )
        previous_stock = product.stock
        product.stock = previous_stock - item.quantity
        total += subtotal
        stock_logger().info(
            "Stock decremented by checkout",
            extra={
                "product_id": str(product.id),
                "quantity": item.quantity,
                "previous_stock": previous_stock,
                "new_stock": product.stock,
            },
        )

    order.total_amount = total
    cart.status = CartStatus.ordered
    db.add(order)
    await flush_async(db)

    record_order_placed()
    logger.info(
        "Order created from cart",
        extra={
            "user_id": str(user.id),
            "order_id": str(order.id),
            "cart_id": str(cart.id),
            "items": len(order.items),
            "total_amount": str(total),
        },
    )
    payment_logger().info(
        "Order awaiting payment",
        extra={"order_id": str(order.id), "amount": str(total), "status": OrderStatus.pending.value},
    )
    return order
