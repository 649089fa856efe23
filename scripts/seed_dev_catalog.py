"""Seed script for populating development categories and products."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import select

from storefront.core.config import settings
from storefront.db.session_async import AsyncSessionLocal
from storefront.models.product import Category, Product
from storefront.schemas.category import CategoryCreate
from storefront.schemas.product import ProductCreate
from storefront.services import category_service, product_service


@dataclass(frozen=True, slots=True)
class CategorySeed:
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class ProductSeed:
    name: str
    sku: str
    price: float
    stock: int
    category: str | None = None
    short_description: str | None = None
    discount_price: int | None = None
    active: bool = True


CATEGORIES: tuple[CategorySeed, ...] = (
    CategorySeed(name="Camperas", description="Abrigos y camperas de temporada"),
    CategorySeed(name="Accesorios", description="Mochilas, gorras y más"),
    CategorySeed(name="Remeras"),
)

PRODUCTS: tuple[ProductSeed, ...] = (
    ProductSeed(
        name="Campera Denim Classic",
        sku="DENIM-JACKET-001",
        price=49999.0,
        stock=12,
        category="Camperas",
        short_description="Campera de jean con forro",
    ),
    ProductSeed(
        name="Campera Rompevientos",
        sku="WIND-JACKET-001",
        price=38999.0,
        stock=0,
        category="Camperas",
        discount_price=15,
    ),
    ProductSeed(
        name="Mochila Urbana Impermeable",
        sku="BACKPACK-URB-001",
        price=25999.0,
        stock=30,
        category="Accesorios",
        discount_price=10,
    ),
    ProductSeed(
        name="Remera Básica Orgánica",
        sku="TEE-ORG-001",
        price=8999.0,
        stock=100,
        category="Remeras",
    ),
    ProductSeed(
        name="Gorra Vintage",
        sku="CAP-VTG-001",
        price=6999.0,
        stock=5,
        category="Accesorios",
        active=False,
    ),
)


async def seed_dev_catalog() -> None:
    """Insert missing categories and products; existing SKUs are left untouched."""
    logger = logging.getLogger("seed_dev_catalog")
    logger.info("Seeding development catalog into %s", settings.ASYNC_DATABASE_URL)

    async with AsyncSessionLocal() as session:
        categories: dict[str, Category] = {}
        for seed in CATEGORIES:
            existing = (
                await session.execute(select(Category).where(Category.name == seed.name))
            ).scalar_one_or_none()
            if existing is None:
                existing = await category_service.create_category(
                    session, CategoryCreate(name=seed.name, description=seed.description)
                )
                logger.debug("Created category %s", seed.name)
            categories[seed.name] = existing

        created = 0
        skipped = 0
        for seed in PRODUCTS:
            exists = (
                await session.execute(select(Product.id).where(Product.sku == seed.sku))
            ).scalar_one_or_none()
            if exists is not None:
                skipped += 1
                continue

            category = categories.get(seed.category) if seed.category else None
            await product_service.create_product(
                session,
                ProductCreate(
                    name=seed.name,
                    sku=seed.sku,
                    price=seed.price,
                    stock=seed.stock,
                    category_id=category.id if category else None,
                    short_description=seed.short_description,
                    discount_price=seed.discount_price,
                    active=seed.active,
                ),
            )
            created += 1

        await session.commit()

    logger.info("Catalog seed completed: %s products created, %s skipped", created, skipped)


async def main() -> None:
    await seed_dev_catalog()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
