from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_admin
from storefront.core.config import settings
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.models.user import User as UserModel
from storefront.schemas.admin import DashboardRead
from storefront.schemas.order import OrderPage, OrderRead, OrderStatusUpdate
from storefront.schemas.user import UserPage, UserRead
from storefront.services import order_service, user_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardRead)
async def dashboard(
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    return {
        "latest_users": await user_service.latest_users(db, settings.DASHBOARD_LATEST_USERS),
        "latest_orders": await order_service.latest_orders(db, settings.DASHBOARD_LATEST_ORDERS),
    }


# ---------- Usuarios ----------
@router.get("/users", response_model=UserPage)
async def list_users(
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    items, total, pages = await user_service.paginate_users(db, page=page, per_page=settings.ADMIN_PAGE_SIZE)
    return {"total": total, "page": page, "pages": pages, "items": items}


@router.patch("/users/{user_id}/role", response_model=UserRead)
async def set_admin_role(
    user_id: str = Path(...),
    make_admin: bool = Query(..., description="true = admin, false = no admin"),
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    user = await user_service.get_user(db, user_id)
    try:
        user = await user_service.set_admin_role(db, user, make_admin, changed_by=admin.id)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return user


@router.patch("/users/{user_id}/active", response_model=UserRead)
async def set_active(
    user_id: str = Path(...),
    active: bool = Query(..., description="true = activar, false = desactivar"),
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    user = await user_service.get_user(db, user_id)
    try:
        user = await user_service.set_active(db, user, active, changed_by=admin.id)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return user


# ---------- Órdenes ----------
@router.get("/orders", response_model=OrderPage)
async def list_orders(
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    items, total, pages = await order_service.paginate_orders(db, page=page, per_page=settings.ADMIN_PAGE_SIZE)
    return {"total": total, "page": page, "pages": pages, "items": items}


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: str = Path(...),
    db: AsyncSession = Depends(get_async_db),
    _: UserModel = Depends(get_current_admin),
):
    return await order_service.get_order(db, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    payload: OrderStatusUpdate,
    order_id: str = Path(...),
    db: AsyncSession = Depends(get_async_db),
    admin: UserModel = Depends(get_current_admin),
):
    order = await order_service.get_order(db, order_id)
    try:
        order = await order_service.update_status(db, order, payload.status, changed_by=admin.id)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return order
