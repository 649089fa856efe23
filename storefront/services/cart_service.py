from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import cart_logger, stock_logger
from storefront.db.operations import flush_async
from storefront.domain.enums import CartStatus
from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidQuantityError,
    ResourceNotFoundError,
)


def _active_cart_stmt(user_id: uuid.UUID):
    return (
        select(Cart)
        .where(Cart.user_id == user_id, Cart.status == CartStatus.active)
        .order_by(Cart.created_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )


async def _reload(db: AsyncSession, cart: Cart) -> Cart:
    # populate_existing descarta la colección cacheada tras agregar o borrar ítems
    stmt = select(Cart).where(Cart.id == cart.id).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one()


def _find_item(cart: Cart, product_id: uuid.UUID) -> CartItem | None:
    return next((item for item in cart.items if item.product_id == product_id), None)


async def get_active_cart(db: AsyncSession, user: User) -> Cart | None:
    result = await db.execute(_active_cart_stmt(user.id))
    return result.scalars().first()


async def get_or_create_cart(db: AsyncSession, user: User) -> Cart:
    """Return the user's active cart, creating it on first access."""
    cart = await get_active_cart(db, user)
    if cart:
        return cart

    cart = Cart(user_id=user.id, status=CartStatus.active)
    db.add(cart)
    await flush_async(db)
    cart_logger().info("Cart created", extra={"user_id": str(user.id), "cart_id": str(cart.id)})
    return await _reload(db, cart)


async def get_product(db: AsyncSession, product_id: uuid.UUID | str) -> Product:
    try:
        product_uuid = uuid.UUID(str(product_id))
    except ValueError as exc:
        raise ResourceNotFoundError("Product not found") from exc
    product = await db.get(Product, product_uuid)
    if not product or not product.active:
        raise ResourceNotFoundError("Product not found")
    return product


async def add_product(db: AsyncSession, user: User, product: Product, quantity: int = 1) -> Cart:
    logger = cart_logger()
    context = {"user_id": str(user.id), "product_id": str(product.id), "quantity": quantity}

    # Validaciones antes de tocar el carrito: un rechazo no deja rastro.
    if quantity < 1:
        logger.warning("Invalid quantity when adding product", extra=context)
        raise InvalidQuantityError("Quantity must be at least 1.")
    if product.stock < quantity:
        stock_logger().warning(
            "Not enough stock to add product",
            extra={**context, "requested": quantity, "available": product.stock},
        )
        raise InsufficientStockError("Not enough stock for this product.")

    cart = await get_or_create_cart(db, user)
    item = _find_item(cart, product.id)
    if item:
        new_quantity = item.quantity + quantity
        if new_quantity > product.stock:
            stock_logger().warning(
                "Not enough stock to add more units",
                extra={**context, "requested": new_quantity, "available": product.stock},
            )
            raise InsufficientStockError("Not enough stock to add more units.")
        item.quantity = new_quantity
        logger.info("Cart item quantity increased", extra={**context, "new_quantity": new_quantity})
    else:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))
        logger.info("Product added to cart", extra=context)

    await flush_async(db)
    return await _reload(db, cart)


async def update_quantity(db: AsyncSession, user: User, product: Product, quantity: int) -> Cart:
    """Set a line to ``quantity``; zero or less removes the line."""
    logger = cart_logger()
    context = {"user_id": str(user.id), "product_id": str(product.id), "quantity": quantity}

    cart = await get_or_create_cart(db, user)
    item = _find_item(cart, product.id)
    if not item:
        logger.warning("Update requested for product not in cart", extra=context)
        raise CartItemNotFoundError("Product not found in the cart.")

    if quantity <= 0:
        await db.delete(item)
        logger.info("Cart item removed by quantity update", extra=context)
    elif quantity > product.stock:
        stock_logger().warning(
            "Not enough stock for requested quantity",
            extra={**context, "requested": quantity, "available": product.stock},
        )
        raise InsufficientStockError("Not enough stock for this quantity.")
    else:
        old_quantity = item.quantity
        item.quantity = quantity
        logger.info("Cart item quantity updated", extra={**context, "old_quantity": old_quantity})

    await flush_async(db)
    return await _reload(db, cart)


async def remove_product(
    db: AsyncSession,
    user: User,
    product_id: uuid.UUID,
    quantity: int | None = None,
) -> Cart:
    """Remove ``quantity`` units of a line, or the whole line when omitted or larger."""
    logger = cart_logger()
    context = {"user_id": str(user.id), "product_id": str(product_id), "quantity": quantity}

    cart = await get_or_create_cart(db, user)
    item = _find_item(cart, product_id)
    if not item:
        logger.warning("Remove requested for product not in cart", extra=context)
        raise CartItemNotFoundError("Product not found in the cart.")

    if quantity is not None and quantity < 1:
        logger.warning("Invalid quantity when removing product", extra=context)
        raise InvalidQuantityError("Quantity must be at least 1.")

    if quantity is not None and quantity < item.quantity:
        item.quantity -= quantity
        logger.info("Cart item quantity reduced", extra={**context, "remaining": item.quantity})
    else:
        await db.delete(item)
        logger.info("Product removed from cart", extra=context)

    await flush_async(db)
    return await _reload(db, cart)


def compute_total(cart: Cart) -> Decimal:
    """Sum of max(0, price) * max(0, quantity). Lines without a product are skipped."""
    total = Decimal("0")
    for item in cart.items:
        if item.product is None:
            cart_logger().warning(
                "Cart item without product skipped in total",
                extra={"cart_id": str(cart.id), "cart_item_id": str(item.id)},
            )
            continue
        total += item.line_total
    return total.quantize(Decimal("0.01"))
