from __future__ import annotations

from math import ceil

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import product_search_params
from storefront.core.config import settings
from storefront.db.session_async import get_async_db
from storefront.schemas.product import PaginatedProducts, ProductRead, ProductSearch
from storefront.services import catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", response_model=PaginatedProducts)
async def list_catalog(
    criteria: ProductSearch = Depends(product_search_params),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    limit = settings.CATALOG_PAGE_SIZE
    criteria = criteria.model_copy(update={"is_active": True})
    items, total = await catalog_service.search_products(db, criteria, page=page, limit=limit)
    return {
        "total": total,
        "page": page,
        "pages": ceil(total / limit) if total else 1,
        "limit": limit,
        "items": items,
    }


@router.get("/{product_id}/{slug}", response_model=ProductRead)
async def show_product(
    product_id: str,
    slug: str,
    request: Request,
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_service.get_active_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.slug != slug:
        canonical = request.url_for("show_product", product_id=str(product.id), slug=product.slug)
        return RedirectResponse(str(canonical), status_code=status.HTTP_301_MOVED_PERMANENTLY)
    return product
