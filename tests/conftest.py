# tests/conftest.py
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import os
import uuid
from decimal import Decimal
from typing import Callable, Generator

import pytest
import pytest_asyncio
import httpx
from sqlalchemy.orm import Session
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from storefront.main import app
from storefront.db.session import Base, SessionLocal, engine as sync_engine
from storefront.db.session_async import AsyncSessionLocal
from storefront.core.security import get_password_hash
from storefront.models.product import Category, Product
from storefront.models.user import User

ADDRESS = {
    "primary_address": "Calle Falsa 123",
    "secondary_address": "Depto 4B",
    "city": "Córdoba",
    "state": "Córdoba",
    "postal_code": "5000",
    "country": "Argentina",
}


# ---------- Fixtures ----------
@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Crea las tablas en SQLite solo una vez por sesión de tests."""
    import storefront.models.cart   # noqa: F401
    import storefront.models.order  # noqa: F401

    Base.metadata.create_all(bind=sync_engine)
    yield
    Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with sync_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Provee una sesión corta para preparar datos."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest_asyncio.fixture(scope="function")
async def client():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_db_session() -> AsyncSession:
    """Provee una AsyncSession para pruebas directas de servicios."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()


# --- Usuarios ---
def _make_user(db_session: Session, prefix: str, password: str, *, is_superuser: bool = False) -> User:
    user = User(
        email=f"{prefix}-{uuid.uuid4()}@example.com",
        full_name=f"Test {prefix.title()}",
        hashed_password=get_password_hash(password),
        is_superuser=is_superuser,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin", "Admin1234", is_superuser=True)


@pytest.fixture(scope="function")
def normal_user(db_session: Session) -> User:
    return _make_user(db_session, "user", "User1234")


async def _login(client: httpx.AsyncClient, email: str, password: str) -> str:
    resp = await client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest_asyncio.fixture(scope="function")
async def admin_token(client: httpx.AsyncClient, admin_user: User) -> str:
    return await _login(client, admin_user.email, "Admin1234")


@pytest_asyncio.fixture(scope="function")
async def user_token(client: httpx.AsyncClient, normal_user: User) -> str:
    return await _login(client, normal_user.email, "User1234")


@pytest.fixture
def auth() -> Callable[[str], dict]:
    return lambda token: {"Authorization": f"Bearer {token}"}


# --- Catálogo ---
@pytest.fixture(scope="function")
def category(db_session: Session) -> Category:
    cat = Category(name="Camperas", slug="camperas", description="Abrigos")
    db_session.add(cat)
    db_session.commit()
    db_session.refresh(cat)
    return cat


@pytest.fixture(scope="function")
def make_product(db_session: Session) -> Callable[..., Product]:
    """Fábrica de productos insertados directamente (sin pasar por la API)."""

    def _factory(
        name: str = "Producto",
        *,
        price: str | float = "100.00",
        stock: int = 10,
        active: bool = True,
        category: Category | None = None,
        discount_price: int | None = None,
        slug: str | None = None,
        **extra,
    ) -> Product:
        product = Product(
            name=name,
            slug=slug or f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            sku=f"SKU-{uuid.uuid4().hex[:10]}",
            price=Decimal(str(price)),
            stock=stock,
            active=active,
            category_id=category.id if category else None,
            discount_price=discount_price,
            **extra,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _factory


@pytest.fixture
def address_payload() -> dict:
    return dict(ADDRESS)
