from __future__ import annotations

import asyncio

from storefront.core.celery_app import celery_app
from storefront.core.logging import cart_logger
from storefront.db.session_async import AsyncSessionLocal
from storefront.services.cart_expiry_service import expire_inactive_carts


async def run_expiry(max_age_days: int | None = None) -> int:
    async with AsyncSessionLocal() as session:
        try:
            expired = await expire_inactive_carts(session, max_age_days=max_age_days)
            await session.commit()
        except Exception:
            await session.rollback()
            cart_logger().exception("Inactive cart expiry failed")
            raise
    return expired


@celery_app.task(name="carts.expire_inactive")
def expire_inactive_carts_task(max_age_days: int | None = None) -> int:
    return asyncio.run(run_expiry(max_age_days))
