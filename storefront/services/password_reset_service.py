from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import security_alert, security_logger
from storefront.core.security import generate_reset_token
from storefront.db.operations import flush_async
from storefront.models.user import PasswordResetToken, User
from storefront.services import user_service
from storefront.services.exceptions import ServiceError


def _as_aware(value: datetime) -> datetime:
    # SQLite devuelve datetimes naive (guardados en UTC)
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def request_reset(db: AsyncSession, email: str) -> tuple[User, str] | None:
    """Issue a fresh token for ``email``. Unknown emails return None silently."""
    user = await user_service.get_by_email(db, email)
    if not user or not user.is_active:
        security_logger().info("Password reset requested for unknown email", extra={"email": email})
        return None

    # Un solo token vigente por usuario
    await db.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user.id))

    now = datetime.now(timezone.utc)
    token = generate_reset_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token=token,
            created_at=now,
            expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        )
    )
    await flush_async(db)
    security_logger().info("Password reset token issued", extra={"user_id": str(user.id)})
    return user, token


async def reset_password(db: AsyncSession, token: str, new_password: str, *, now: datetime | None = None) -> User:
    now = now or datetime.now(timezone.utc)
    result = await db.execute(select(PasswordResetToken).where(PasswordResetToken.token == token))
    reset = result.scalar_one_or_none()
    if reset is None or _as_aware(reset.expires_at) < now:
        security_alert("Invalid or expired password reset token used")
        raise ServiceError("Invalid or expired token")

    user = await user_service.get_user(db, reset.user_id)
    await user_service.set_password(db, user, new_password)
    await db.delete(reset)
    await flush_async(db)
    security_logger().info("Password reset completed", extra={"user_id": str(user.id)})
    return user
