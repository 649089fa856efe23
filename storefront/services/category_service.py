from __future__ import annotations

from typing import Sequence
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.operations import flush_async, refresh_async
from storefront.models.product import Category, Product
from storefront.schemas.category import CategoryCreate, CategoryUpdate
from storefront.services.exceptions import ConflictError, ResourceNotFoundError
from storefront.utils.slugify import generate_unique_slug


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ResourceNotFoundError("Category not found") from exc


async def _name_exists(db: AsyncSession, name: str) -> bool:
    stmt = select(Category.id).where(Category.name == name).limit(1)
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


# ---------------- Lectura pública ----------------
async def list_active_categories(db: AsyncSession) -> Sequence[Category]:
    stmt = (
        select(Category)
        .where(Category.active.is_(True))
        .order_by(Category.name.asc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_all_categories(db: AsyncSession) -> Sequence[Category]:
    stmt = select(Category).order_by(Category.created_at.desc())
    result = await db.execute(stmt)
    return result.scalars().all()


async def get_category(db: AsyncSession, category_id: str | uuid.UUID) -> Category:
    category = await db.get(Category, _as_uuid(category_id))
    if not category:
        raise ResourceNotFoundError("Category not found")
    return category


async def get_category_by_slug(db: AsyncSession, slug: str) -> Category | None:
    stmt = (
        select(Category)
        .where(Category.slug == slug)
        .where(Category.active.is_(True))
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalars().first()


# ---------------- Admin CRUD ----------------
async def create_category(db: AsyncSession, payload: CategoryCreate) -> Category:
    data = payload.model_dump()
    if await _name_exists(db, data["name"]):
        raise ConflictError("Category name already exists")

    category = Category(**data, slug=await generate_unique_slug(db, Category, data["name"]))
    db.add(category)
    await flush_async(db)
    await refresh_async(db, category)
    return category


async def update_category(db: AsyncSession, category: Category, payload: CategoryUpdate) -> Category:
    changes = payload.model_dump(exclude_unset=True)

    if "name" in changes and changes["name"] != category.name:
        if await _name_exists(db, changes["name"]):
            raise ConflictError("Category name already exists")
        changes["slug"] = await generate_unique_slug(db, Category, changes["name"], exclude_id=category.id)

    for field, value in changes.items():
        setattr(category, field, value)

    await flush_async(db)
    await refresh_async(db, category)
    return category


async def delete_category(db: AsyncSession, category: Category) -> None:
    await db.execute(update(Product).where(Product.category_id == category.id).values(category_id=None))
    await db.delete(category)
    await flush_async(db)
