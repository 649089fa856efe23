"""Seed script for populating development users without raw SQL."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import sys
from pathlib import Path

# Ensure project root is on PYTHONPATH when running as a script.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storefront.core.config import settings
from storefront.db.session_async import AsyncSessionLocal
from storefront.schemas.profile import CustomerProfileUpdate
from storefront.schemas.user import UserCreate
from storefront.services import profile_service, user_service


@dataclass(frozen=True, slots=True)
class DevUser:
    email: str
    full_name: str
    password: str
    is_superuser: bool = False
    city: str | None = None


DEV_USERS: tuple[DevUser, ...] = (
    DevUser(
        email="admin.dev@example.com",
        full_name="Dev Admin",
        password="AdminDev123!",
        is_superuser=True,
    ),
    DevUser(
        email="user1.dev@example.com",
        full_name="Dev Customer One",
        password="UserDev123!",
        city="Rosario",
    ),
    DevUser(
        email="user2.dev@example.com",
        full_name="Dev Customer Two",
        password="UserDev123!",
    ),
)


async def seed_dev_users() -> None:
    """Insert or update development users in the configured database."""
    logger = logging.getLogger("seed_dev_users")
    logger.info("Seeding development users into %s", settings.ASYNC_DATABASE_URL)

    created = 0
    updated = 0
    skipped = 0

    async with AsyncSessionLocal() as session:
        for dev_user in DEV_USERS:
            existing = await user_service.get_by_email(session, dev_user.email)

            if existing:
                if dev_user.is_superuser and not existing.is_superuser:
                    existing.is_superuser = True
                    updated += 1
                    logger.debug("Promoted existing user %s", dev_user.email)
                else:
                    skipped += 1
                    logger.debug("Skipped user %s (already up to date)", dev_user.email)
                continue

            user = await user_service.create_user(
                session,
                UserCreate(
                    email=dev_user.email,
                    full_name=dev_user.full_name,
                    password=dev_user.password,
                ),
            )
            user.is_superuser = dev_user.is_superuser
            if dev_user.city:
                first_name, _, surname = dev_user.full_name.rpartition(" ")
                await profile_service.upsert_profile(
                    session,
                    user,
                    CustomerProfileUpdate(
                        first_name=first_name,
                        surname=surname,
                        primary_address="Av. Siempre Viva 742",
                        city=dev_user.city,
                        postal_code="2000",
                        country="Argentina",
                    ),
                )
            created += 1
            logger.debug("Created user %s", dev_user.email)

        await session.commit()

    logger.info(
        "Seed completed: %s created, %s updated, %s skipped",
        created,
        updated,
        skipped,
    )


async def main() -> None:
    await seed_dev_users()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
