import uuid

import pytest
from httpx import AsyncClient

from storefront.models.product import Category
from storefront.services.exceptions import DomainValidationError, SlugGenerationError
from storefront.utils.slugify import generate_unique_slug, slugify


def _categories(db_session, base: str, suffixes) -> list[Category]:
    rows = []
    for suffix in suffixes:
        slug = base if suffix is None else f"{base}-{suffix}"
        rows.append(Category(name=f"{slug}-{uuid.uuid4().hex[:6]}", slug=slug))
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Campera Denim Classic", "campera-denim-classic"),
        ("  Niño & Ñandú!  ", "nino-nandu"),
        ("Remera---Básica", "remera-basica"),
        ("100% Algodón", "100-algodon"),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.asyncio
async def test_free_base_slug_is_used_as_is(async_db_session):
    assert await generate_unique_slug(async_db_session, Category, "Camperas") == "camperas"


@pytest.mark.asyncio
async def test_first_free_suffix_is_chosen(async_db_session, db_session):
    _categories(db_session, "camperas", [None, 1])
    assert await generate_unique_slug(async_db_session, Category, "Camperas") == "camperas-2"


@pytest.mark.asyncio
async def test_gap_in_suffixes_is_reused(async_db_session, db_session):
    _categories(db_session, "camperas", [None, 2])
    assert await generate_unique_slug(async_db_session, Category, "Camperas") == "camperas-1"


@pytest.mark.asyncio
async def test_exclude_id_keeps_own_slug(async_db_session, db_session):
    (own,) = _categories(db_session, "camperas", [None])
    slug = await generate_unique_slug(async_db_session, Category, "Camperas", exclude_id=own.id)
    assert slug == "camperas"


@pytest.mark.asyncio
async def test_last_probe_is_base_49(async_db_session, db_session):
    _categories(db_session, "remera", [None, *range(1, 49)])
    assert await generate_unique_slug(async_db_session, Category, "Remera") == "remera-49"


@pytest.mark.asyncio
async def test_fifty_taken_slugs_exhaust_generation(async_db_session, db_session):
    _categories(db_session, "remera", [None, *range(1, 50)])
    with pytest.raises(SlugGenerationError) as exc_info:
        await generate_unique_slug(async_db_session, Category, "Remera")
    assert exc_info.value.detail == "Cannot generate a unique slug for this name."


@pytest.mark.asyncio
async def test_custom_attempt_limit(async_db_session, db_session):
    _categories(db_session, "gorra", [None, 1])
    with pytest.raises(SlugGenerationError):
        await generate_unique_slug(async_db_session, Category, "Gorra", max_attempts=2)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "!!!"])
async def test_empty_slug_is_rejected(async_db_session, name):
    with pytest.raises(DomainValidationError):
        await generate_unique_slug(async_db_session, Category, name)


@pytest.mark.asyncio
async def test_products_with_same_name_get_suffixed_slugs(client: AsyncClient, admin_token: str, auth):
    slugs = []
    for sku in ("DUP-1", "DUP-2", "DUP-3"):
        resp = await client.post(
            "/api/v1/products",
            json={"name": "Campera Denim", "sku": sku, "price": 100.0, "stock": 1},
            headers=auth(admin_token),
        )
        assert resp.status_code == 201, resp.text
        slugs.append(resp.json()["slug"])
    assert slugs == ["campera-denim", "campera-denim-1", "campera-denim-2"]
