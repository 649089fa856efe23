from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import cart_logger
from storefront.core.metrics import record_carts_expired
from storefront.db.operations import flush_async
from storefront.domain.enums import CartStatus
from storefront.models.cart import Cart


async def expire_inactive_carts(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    max_age_days: int | None = None,
) -> int:
    """Flip active carts created more than ``max_age_days`` ago to expired.

    One flush for the whole batch; the caller commits. Returns the number of
    carts expired.
    """
    logger = cart_logger()
    now = now or datetime.now(timezone.utc)
    days = max_age_days if max_age_days is not None else settings.CART_EXPIRY_DAYS
    cutoff = now - timedelta(days=days)

    stmt = select(Cart).where(Cart.status == CartStatus.active, Cart.created_at < cutoff)
    carts = (await db.execute(stmt)).scalars().all()
    if not carts:
        logger.info("No inactive carts to expire", extra={"cutoff": cutoff.isoformat()})
        return 0

    for cart in carts:
        cart.status = CartStatus.expired
    await flush_async(db)

    record_carts_expired(len(carts))
    logger.info("Expired inactive carts", extra={"expired_count": len(carts), "cutoff": cutoff.isoformat()})
    return len(carts)
