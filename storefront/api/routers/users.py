from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_current_active_user
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.models.user import User as UserModel
from storefront.schemas.profile import CustomerProfileRead, CustomerProfileUpdate
from storefront.schemas.user import UserCreate, UserRead
from storefront.services import profile_service, user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_me(current_user: UserModel = Depends(get_current_active_user)):
    return current_user


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_async_db),
):
    try:
        user = await user_service.create_user(db, data)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return user


@router.get("/me/profile", response_model=CustomerProfileRead)
async def read_profile(
    db: AsyncSession = Depends(get_async_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    profile = await profile_service.get_profile(db, current_user)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("/me/profile", response_model=CustomerProfileRead)
async def update_profile(
    payload: CustomerProfileUpdate,
    db: AsyncSession = Depends(get_async_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    try:
        profile = await profile_service.upsert_profile(db, current_user, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return profile
