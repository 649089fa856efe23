from __future__ import annotations

import uuid
from datetime import datetime, timezone
from math import ceil
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import security_logger
from storefront.core.security import get_password_hash, verify_password
from storefront.db.operations import flush_async, refresh_async
from storefront.models.user import User
from storefront.schemas.user import UserCreate
from storefront.services.exceptions import ResourceNotFoundError, ServiceError


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.lower()).limit(1)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_user(db: AsyncSession, user_id: str | uuid.UUID) -> User:
    try:
        user_uuid = uuid.UUID(str(user_id))
    except ValueError as exc:
        raise ResourceNotFoundError("User not found") from exc
    user = await db.get(User, user_uuid)
    if not user:
        raise ResourceNotFoundError("User not found")
    return user


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    if await get_by_email(db, data.email):
        security_logger().warning("Registration with existing email", extra={"email": data.email})
        raise ServiceError("Email already registered")

    user = User(
        email=data.email,
        full_name=data.full_name,
        hashed_password=get_password_hash(data.password),
    )
    db.add(user)
    await flush_async(db)
    await refresh_async(db, user)
    security_logger().info("User registered", extra={"user_id": str(user.id), "email": user.email})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def record_login(db: AsyncSession, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    await flush_async(db)


async def set_password(db: AsyncSession, user: User, password: str) -> None:
    user.hashed_password = get_password_hash(password)
    await flush_async(db)


async def paginate_users(db: AsyncSession, *, page: int, per_page: int) -> tuple[Sequence[User], int, int]:
    total = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    pages = ceil(total / per_page) if total else 1
    stmt = (
        select(User)
        .order_by(User.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    result = await db.execute(stmt)
    return result.scalars().all(), total, pages


async def latest_users(db: AsyncSession, limit: int) -> Sequence[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()).limit(limit))
    return result.scalars().all()


async def set_admin_role(db: AsyncSession, user: User, make_admin: bool, *, changed_by: uuid.UUID | None = None) -> User:
    previous = user.is_superuser
    user.is_superuser = bool(make_admin)
    await flush_async(db)
    security_logger().warning(
        "User role changed",
        extra={
            "user_id": str(user.id),
            "old_admin": previous,
            "new_admin": user.is_superuser,
            "changed_by": str(changed_by) if changed_by else None,
        },
    )
    return user


async def set_active(db: AsyncSession, user: User, active: bool, *, changed_by: uuid.UUID | None = None) -> User:
    user.is_active = bool(active)
    await flush_async(db)
    security_logger().warning(
        "User active flag changed",
        extra={
            "user_id": str(user.id),
            "active": user.is_active,
            "changed_by": str(changed_by) if changed_by else None,
        },
    )
    return user
