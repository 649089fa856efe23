"""API JSON pública de productos: respuestas con sobre {status, message, data}."""
from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import analytics_logger
from storefront.db.session_async import get_async_db
from storefront.schemas.api import ApiEnvelope, ApiProduct
from storefront.schemas.product import ProductSearch
from storefront.services import catalog_service

router = APIRouter(prefix="/api/products", tags=["api"])


def _envelope(status_code: int, status: str, message: str, data=None) -> JSONResponse:
    body = ApiEnvelope(status=status, message=message, data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _unexpected(message: str, exc: Exception, **context) -> JSONResponse:
    analytics_logger().error(message, exc_info=exc, extra={"exception": str(exc), **context})
    return _envelope(500, "error", "An unexpected error occurred")


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def _paging(request: Request) -> tuple[int, int]:
    page = max(1, _int_param(request, "page", 1))
    limit = _int_param(request, "limit", settings.API_PAGE_SIZE_DEFAULT)
    if limit < 1:
        limit = settings.API_PAGE_SIZE_DEFAULT
    return page, min(settings.API_PAGE_SIZE_MAX, limit)


def _price_param(request: Request, name: str) -> tuple[float | None, str | None]:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return None, None
    try:
        value = float(raw)
    except ValueError:
        value = None
    if value is None or not math.isfinite(value):
        return None, f"Invalid parameter: {name} must be a number."
    return value, None


@router.get("")
async def list_products(request: Request, db: AsyncSession = Depends(get_async_db)):
    try:
        page, limit = _paging(request)
        items, total = await catalog_service.search_products(
            db, ProductSearch(is_active=True), page=page, limit=limit
        )
        data = [ApiProduct.from_product(product).model_dump(mode="json") for product in items]
        analytics_logger().info(
            "API products list accessed",
            extra={"page": page, "limit": limit, "count": len(data), "total": total},
        )
        return _envelope(200, "success", "Products retrieved successfully", data)
    except Exception as exc:
        return _unexpected("Error fetching API products list", exc)


@router.get("/search")
async def search_products(request: Request, db: AsyncSession = Depends(get_async_db)):
    try:
        page, limit = _paging(request)
        name = request.query_params.get("name") or None

        min_price, error = _price_param(request, "minPrice")
        if error:
            return _envelope(400, "error", error)
        max_price, error = _price_param(request, "maxPrice")
        if error:
            return _envelope(400, "error", error)
        if min_price is not None and max_price is not None and min_price > max_price:
            return _envelope(400, "error", "Invalid price range: minPrice cannot be greater than maxPrice.")
        if (min_price is not None and min_price < 0) or (max_price is not None and max_price < 0):
            return _envelope(400, "error", "Invalid parameter: prices cannot be negative.")

        criteria = ProductSearch(name=name, min_price=min_price, max_price=max_price, is_active=True)
        items, total = await catalog_service.search_products(db, criteria, page=page, limit=limit)
        data = [ApiProduct.from_product(product).model_dump(mode="json") for product in items]
        analytics_logger().info(
            "API product search executed",
            extra={
                "filters": criteria.model_dump(exclude_none=True, mode="json"),
                "page": page,
                "limit": limit,
                "count": len(data),
            },
        )
        return _envelope(200, "success", "Products retrieved successfully", data)
    except Exception as exc:
        return _unexpected("Error executing product search", exc)


@router.get("/{product_id}")
async def product_detail(product_id: str, db: AsyncSession = Depends(get_async_db)):
    try:
        product = await catalog_service.get_active_product(db, product_id)
        if not product:
            analytics_logger().warning(
                "Product not found in API detail endpoint", extra={"product_id": product_id}
            )
            return _envelope(404, "error", "Product not found")

        analytics_logger().info("API product detail accessed", extra={"product_id": product_id})
        return _envelope(
            200,
            "success",
            "Product retrieved successfully",
            ApiProduct.from_product(product).model_dump(mode="json"),
        )
    except Exception as exc:
        return _unexpected("Error fetching product detail in API", exc, product_id=product_id)
