# storefront/initial_data.py
from contextlib import asynccontextmanager

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import get_logger
from storefront.db.session_async import AsyncSessionLocal
from storefront.models.user import User
from storefront.schemas.user import UserCreate
from storefront.services import user_service

logger = get_logger(__name__)


@asynccontextmanager
async def _advisory_lock(session: AsyncSession):
    """
    Evita carreras en entornos multi-worker (PostgreSQL).
    No hace nada en SQLite/otros dialectos.
    """
    dialect = session.bind.dialect.name if session.bind else "unknown"
    lock_key = 918273645
    got_lock = False
    try:
        if dialect == "postgresql":
            res = await session.execute(text("SELECT pg_try_advisory_lock(:k)"), {"k": lock_key})
            got_lock = bool(res.scalar())
            if not got_lock:
                logger.info("Another worker is bootstrapping the admin user; skipping.")
                yield False
                return
        yield True
    finally:
        if got_lock:
            await session.execute(text("SELECT pg_advisory_unlock(:k)"), {"k": lock_key})


async def create_initial_admin_user() -> None:
    """
    Crea el admin inicial si hay credenciales configuradas y no existe
    ningún superusuario. Idempotente.
    """
    if not settings.INITIAL_ADMIN_EMAIL or not settings.INITIAL_ADMIN_PASSWORD:
        logger.info("Skipping admin init: INITIAL_ADMIN_EMAIL or INITIAL_ADMIN_PASSWORD missing.")
        return

    async with AsyncSessionLocal() as session:
        async with _advisory_lock(session) as proceed:
            if proceed is False:
                return

            stmt = select(func.count()).select_from(User).where(User.is_superuser.is_(True))
            if ((await session.execute(stmt)).scalar() or 0) > 0:
                logger.info("A superuser already exists; nothing to do.")
                return

            existing = await user_service.get_by_email(session, str(settings.INITIAL_ADMIN_EMAIL))
            if existing:
                existing.is_superuser = True
                await session.commit()
                logger.warning(
                    "Existing user promoted to initial admin.",
                    extra={"user_id": str(existing.id), "email": existing.email},
                )
                return

            user = await user_service.create_user(
                session,
                UserCreate(
                    email=str(settings.INITIAL_ADMIN_EMAIL),
                    password=settings.INITIAL_ADMIN_PASSWORD,
                    full_name="Initial Admin",
                ),
            )
            user.is_superuser = True
            await session.commit()
            logger.info("Initial admin created.", extra={"user_id": str(user.id), "email": user.email})
