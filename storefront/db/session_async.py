# storefront/db/session_async.py
"""Async SQLAlchemy session utilities."""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from storefront.core.config import settings

T = TypeVar("T")

# aiosqlite connections are bound to the loop that opened them; do not pool them.
engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
if settings.ASYNC_DATABASE_URL.startswith("sqlite"):
    engine_kwargs = {"poolclass": NullPool}

async_engine: AsyncEngine = create_async_engine(
    settings.ASYNC_DATABASE_URL,
    **engine_kwargs,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an AsyncSession."""
    async with AsyncSessionLocal() as session:
        yield session


async def run_in_transaction(
    operation: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Execute an async operation within a managed transaction."""
    async with AsyncSessionLocal() as session:
        try:
            result = await operation(session)
            await session.commit()
            return result
        except Exception:
            await session.rollback()
            raise
