from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.operations import flush_async, refresh_async
from storefront.models.user import CustomerProfile, User
from storefront.schemas.profile import CustomerProfileUpdate


async def get_profile(db: AsyncSession, user: User) -> CustomerProfile | None:
    result = await db.execute(select(CustomerProfile).where(CustomerProfile.user_id == user.id))
    return result.scalar_one_or_none()


async def upsert_profile(db: AsyncSession, user: User, payload: CustomerProfileUpdate) -> CustomerProfile:
    """Create the profile on first save, otherwise apply the submitted fields."""
    profile = await get_profile(db, user)
    if profile is None:
        profile = CustomerProfile(user_id=user.id, **payload.model_dump())
        db.add(profile)
    else:
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

    await flush_async(db)
    await refresh_async(db, profile)
    return profile
