from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_admin
from storefront.core.config import settings
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from storefront.schemas.product import ProductRead, ProductSearch
from storefront.services import catalog_service, category_service

router = APIRouter(prefix="/categories", tags=["categories"])


# --- Público ---
@router.get("", response_model=list[CategoryRead])
async def public_list(db: AsyncSession = Depends(get_async_db)):
    return await category_service.list_active_categories(db)


@router.get(
    "/all",
    response_model=list[CategoryRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(db: AsyncSession = Depends(get_async_db)):
    return await category_service.list_all_categories(db)


@router.get("/{slug}/products", response_model=list[ProductRead])
async def public_products(slug: str, db: AsyncSession = Depends(get_async_db)):
    category = await category_service.get_category_by_slug(db, slug)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    criteria = ProductSearch(category_id=category.id, is_active=True)
    items, _ = await catalog_service.search_products(db, criteria, page=1, limit=settings.API_PAGE_SIZE_MAX)
    return items


# --- Admin ---
@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def admin_create(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        category = await category_service.create_category(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return category


@router.put(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_update(
    category_id: str = Path(...),
    payload: CategoryUpdate = ...,
    db: AsyncSession = Depends(get_async_db),
):
    category = await category_service.get_category(db, category_id)
    try:
        updated = await category_service.update_category(db, category, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return updated


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(category_id: str = Path(...), db: AsyncSession = Depends(get_async_db)):
    category = await category_service.get_category(db, category_id)
    try:
        await category_service.delete_category(db, category)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
