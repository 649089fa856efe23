from math import ceil
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Path, Response, Security, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_user, product_search_params
from storefront.core.config import settings
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.models.user import User
from storefront.schemas.product import (
    PaginatedProducts,
    ProductCreate,
    ProductRead,
    ProductSearch,
    ProductUpdate,
)
from storefront.services import catalog_service, product_service

router = APIRouter(prefix="/products", tags=["products"])


# ---------- Admin: Producto (requiere scope 'products:write') ----------
@router.get("", response_model=PaginatedProducts)
async def admin_list(
    criteria: ProductSearch = Depends(product_search_params),
    is_active: bool | None = Query(None, description="Filtrar por estado; sin valor incluye inactivos"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["products:write"]),
):
    criteria = criteria.model_copy(update={"is_active": is_active})
    items, total = await catalog_service.search_products(db, criteria, page=page, limit=limit)
    return {
        "total": total,
        "page": page,
        "pages": ceil(total / limit) if total else 1,
        "limit": limit,
        "items": items,
    }


@router.get("/{product_id}", response_model=ProductRead)
async def admin_get(
    product_id: UUID = Path(..., description="UUID del producto"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["products:write"]),
):
    return await product_service.get_product(db, product_id)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
async def admin_create(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["products:write"]),
):
    try:
        product = await product_service.create_product(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return product


@router.put(
    "/{product_id}",
    response_model=ProductRead,
)
async def admin_update(
    product_id: UUID = Path(..., description="UUID del producto"),
    payload: ProductUpdate = ...,
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["products:write"]),
):
    product = await product_service.get_product(db, product_id)
    try:
        updated = await product_service.update_product(db, product, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return updated


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def admin_delete(
    product_id: UUID = Path(..., description="UUID del producto"),
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Security(get_current_user, scopes=["products:write"]),
):
    product = await product_service.get_product(db, product_id)
    try:
        await product_service.delete_product(db, product)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)
