from __future__ import annotations

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger, stock_logger
from storefront.db.operations import flush_async, refresh_async
from storefront.models.cart import CartItem
from storefront.models.order import OrderItem
from storefront.models.product import Category, Product
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.exceptions import ConflictError, ResourceNotFoundError
from storefront.utils.slugify import generate_unique_slug

logger = get_logger("storefront.products")


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ResourceNotFoundError("Product not found") from exc


async def _sku_exists(db: AsyncSession, sku: str, exclude_id: uuid.UUID | None = None) -> bool:
    stmt = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _ensure_category(db: AsyncSession, category_id: uuid.UUID | None) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise ResourceNotFoundError("Category not found")


async def get_product(db: AsyncSession, product_id: str | uuid.UUID) -> Product:
    product = await db.get(Product, _as_uuid(product_id))
    if not product:
        raise ResourceNotFoundError("Product not found")
    return product


async def create_product(db: AsyncSession, payload: ProductCreate) -> Product:
    data = payload.model_dump()
    if await _sku_exists(db, data["sku"]):
        raise ConflictError("Product SKU already exists")
    await _ensure_category(db, data.get("category_id"))

    product = Product(**data, slug=await generate_unique_slug(db, Product, data["name"]))
    db.add(product)
    await flush_async(db)
    await refresh_async(db, product)

    logger.info("Product created", extra={"product_id": str(product.id), "slug": product.slug})
    stock_logger().info(
        "Initial stock set",
        extra={"product_id": str(product.id), "new_stock": product.stock},
    )
    return product


async def update_product(db: AsyncSession, product: Product, payload: ProductUpdate) -> Product:
    changes = payload.model_dump(exclude_unset=True)

    if "sku" in changes and changes["sku"] != product.sku:
        if await _sku_exists(db, changes["sku"], exclude_id=product.id):
            raise ConflictError("Product SKU already exists")
    if "category_id" in changes:
        await _ensure_category(db, changes["category_id"])
    if "name" in changes and changes["name"] != product.name:
        changes["slug"] = await generate_unique_slug(db, Product, changes["name"], exclude_id=product.id)

    previous_stock = product.stock
    for field, value in changes.items():
        setattr(product, field, value)

    await flush_async(db)
    await refresh_async(db, product)

    if "stock" in changes and changes["stock"] != previous_stock:
        stock_logger().info(
            "Stock updated",
            extra={"product_id": str(product.id), "previous_stock": previous_stock, "new_stock": product.stock},
        )
    logger.info("Product updated", extra={"product_id": str(product.id), "fields": sorted(changes)})
    return product


async def delete_product(db: AsyncSession, product: Product) -> None:
    # Las líneas de carrito y de orden conservan su fila sin referencia al producto.
    await db.execute(update(CartItem).where(CartItem.product_id == product.id).values(product_id=None))
    await db.execute(update(OrderItem).where(OrderItem.product_id == product.id).values(product_id=None))
    await db.delete(product)
    await flush_async(db)
    logger.info("Product deleted", extra={"product_id": str(product.id)})
