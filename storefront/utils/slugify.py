import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.logging import analytics_logger
from storefront.services.exceptions import DomainValidationError, SlugGenerationError


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-")
    return text.lower()


async def _slug_taken(db: AsyncSession, model, candidate: str, exclude_id=None) -> bool:
    stmt = select(model.id).where(model.slug == candidate)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def generate_unique_slug(
    db: AsyncSession,
    model,
    base_text: str,
    *,
    exclude_id=None,
    max_attempts: int | None = None,
) -> str:
    """Return ``base``, ``base-1``, ``base-2``... whichever is free first.

    At most ``max_attempts`` candidates are probed. Not safe against two
    concurrent writers; the unique index on ``slug`` is the final guard.
    ``exclude_id`` lets a row keep its own slug on update.
    """
    logger = analytics_logger()
    attempts = max_attempts or settings.SLUG_MAX_ATTEMPTS

    base = slugify(base_text or "")
    if not base:
        logger.warning("Slug generation rejected empty name", extra={"model": model.__name__})
        raise DomainValidationError("Name cannot be empty when generating a slug.")

    candidate = base
    for index in range(1, attempts + 1):
        if not await _slug_taken(db, model, candidate, exclude_id):
            logger.info(
                "Slug generated",
                extra={"model": model.__name__, "slug": candidate, "attempts": index},
            )
            return candidate
        candidate = f"{base}-{index}"

    logger.error(
        "Slug generation exhausted attempts",
        extra={"model": model.__name__, "base_slug": base, "max_attempts": attempts},
    )
    raise SlugGenerationError("Cannot generate a unique slug for this name.")
