from __future__ import annotations

import uuid
from datetime import datetime, time, timezone
from typing import Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import analytics_logger
from storefront.domain.enums import ProductSort, StockAvailability
from storefront.models.product import Product
from storefront.schemas.product import ProductSearch

_SORTS = {
    ProductSort.price_asc: (Product.price.asc(),),
    ProductSort.price_desc: (Product.price.desc(),),
    ProductSort.name_asc: (Product.name.asc(),),
    ProductSort.name_desc: (Product.name.desc(),),
    ProductSort.newest: (Product.created_at.desc(),),
    ProductSort.discount_desc: (Product.discount_price.desc().nulls_last(), Product.created_at.desc()),
}


def _day_start(value) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _day_end(value) -> datetime:
    return datetime.combine(value, time(23, 59, 59, 999999), tzinfo=timezone.utc)


def build_product_query(criteria: ProductSearch) -> Select:
    """Assemble a filtered, ordered select over products. Unset criteria are ignored."""
    stmt = select(Product)

    if criteria.name:
        stmt = stmt.where(Product.name.ilike(f"%{criteria.name}%"))
    if criteria.sku:
        stmt = stmt.where(Product.sku == criteria.sku)
    if criteria.short_description:
        stmt = stmt.where(Product.short_description.ilike(f"%{criteria.short_description}%"))
    if criteria.min_price is not None:
        stmt = stmt.where(Product.price >= criteria.min_price)
    if criteria.max_price is not None:
        stmt = stmt.where(Product.price <= criteria.max_price)
    if criteria.stock is not None:
        stmt = stmt.where(Product.stock == criteria.stock)
    if criteria.availability == StockAvailability.in_stock:
        stmt = stmt.where(Product.stock > 0)
    elif criteria.availability == StockAvailability.out_stock:
        stmt = stmt.where(Product.stock == 0)
    if criteria.on_sale is True:
        stmt = stmt.where(Product.discount_price.is_not(None))
    elif criteria.on_sale is False:
        stmt = stmt.where(Product.discount_price.is_(None))
    if criteria.category_id:
        stmt = stmt.where(Product.category_id == criteria.category_id)
    if criteria.is_active is not None:
        stmt = stmt.where(Product.active.is_(criteria.is_active))
    if criteria.start_date:
        stmt = stmt.where(Product.created_at >= _day_start(criteria.start_date))
    if criteria.end_date:
        stmt = stmt.where(Product.created_at <= _day_end(criteria.end_date))

    order_by = _SORTS[criteria.sort or ProductSort.newest]
    return stmt.order_by(*order_by, Product.id)


async def search_products(
    db: AsyncSession,
    criteria: ProductSearch,
    *,
    page: int = 1,
    limit: int = 10,
) -> tuple[Sequence[Product], int]:
    stmt = build_product_query(criteria)

    base_subq = stmt.order_by(None).subquery()
    total = (await db.execute(select(func.count()).select_from(base_subq))).scalar_one()

    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    items = result.scalars().unique().all()

    analytics_logger().info(
        "Product search executed",
        extra={
            "filters": criteria.model_dump(exclude_none=True, mode="json"),
            "page": page,
            "limit": limit,
            "count": len(items),
            "total": total,
        },
    )
    return items, total


async def get_active_product(db: AsyncSession, product_id: str | uuid.UUID) -> Product | None:
    try:
        product_uuid = uuid.UUID(str(product_id))
    except ValueError:
        return None
    product = await db.get(Product, product_uuid)
    if not product or not product.active:
        return None
    return product
