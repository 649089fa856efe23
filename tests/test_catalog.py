from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from storefront.schemas.product import ProductSearch
from storefront.services import catalog_service


def _names(resp) -> list[str]:
    return [item["name"] for item in resp.json()["items"]]


@pytest.mark.asyncio
async def test_catalog_lists_only_active_products_paginated(client: AsyncClient, make_product):
    for index in range(12):
        make_product(f"Activo {index:02d}", price=10 + index)
    make_product("Inactivo", active=False)

    first = await client.get("/api/v1/catalog", params={"sort": "name_asc"})
    assert first.status_code == 200, first.text
    body = first.json()
    assert body["total"] == 12
    assert body["pages"] == 2
    assert body["limit"] == 10
    assert len(body["items"]) == 10

    second = await client.get("/api/v1/catalog", params={"sort": "name_asc", "page": 2})
    assert _names(second) == ["Activo 10", "Activo 11"]
    assert "Inactivo" not in _names(first) + _names(second)


@pytest.mark.asyncio
async def test_catalog_filters(client: AsyncClient, make_product, category):
    make_product("Campera Denim", price="120.00", stock=4, category=category, discount_price=20)
    make_product("Campera Liviana", price="80.00", stock=0, category=category)
    make_product("Mochila", price="45.00", stock=9, short_description="Impermeable")

    by_name = await client.get("/api/v1/catalog", params={"name": "campera"})
    assert sorted(_names(by_name)) == ["Campera Denim", "Campera Liviana"]

    in_stock = await client.get("/api/v1/catalog", params={"availability": "in_stock", "sort": "name_asc"})
    assert _names(in_stock) == ["Campera Denim", "Mochila"]

    out_stock = await client.get("/api/v1/catalog", params={"availability": "out_stock"})
    assert _names(out_stock) == ["Campera Liviana"]

    on_sale = await client.get("/api/v1/catalog", params={"on_sale": "true"})
    assert _names(on_sale) == ["Campera Denim"]

    by_category = await client.get("/api/v1/catalog", params={"category": str(category.id), "sort": "price_asc"})
    assert _names(by_category) == ["Campera Liviana", "Campera Denim"]

    by_price = await client.get("/api/v1/catalog", params={"min_price": 50, "max_price": 100})
    assert _names(by_price) == ["Campera Liviana"]

    by_desc = await client.get("/api/v1/catalog", params={"short_description": "imperme"})
    assert _names(by_desc) == ["Mochila"]

    by_stock = await client.get("/api/v1/catalog", params={"stock": 9})
    assert _names(by_stock) == ["Mochila"]


@pytest.mark.asyncio
async def test_catalog_sorting(client: AsyncClient, make_product):
    make_product("Beta", price="20.00", discount_price=5)
    make_product("Alfa", price="30.00")
    make_product("Gamma", price="10.00", discount_price=50)

    assert _names(await client.get("/api/v1/catalog", params={"sort": "price_asc"})) == ["Gamma", "Beta", "Alfa"]
    assert _names(await client.get("/api/v1/catalog", params={"sort": "price_desc"})) == ["Alfa", "Beta", "Gamma"]
    assert _names(await client.get("/api/v1/catalog", params={"sort": "name_desc"})) == ["Gamma", "Beta", "Alfa"]
    discount = _names(await client.get("/api/v1/catalog", params={"sort": "discount_desc"}))
    assert discount[:2] == ["Gamma", "Beta"]


@pytest.mark.asyncio
async def test_catalog_date_range(client: AsyncClient, make_product):
    make_product("Viejo", created_at=datetime(2025, 1, 10, 15, 0, tzinfo=timezone.utc))
    make_product("Nuevo", created_at=datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc))

    resp = await client.get("/api/v1/catalog", params={"start_date": "2025-05-01", "end_date": "2025-06-01"})
    assert _names(resp) == ["Nuevo"]

    same_day = await client.get("/api/v1/catalog", params={"start_date": "2025-01-10", "end_date": "2025-01-10"})
    assert _names(same_day) == ["Viejo"]

    newest_first = await client.get("/api/v1/catalog")
    assert _names(newest_first) == ["Nuevo", "Viejo"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"min_price": 100, "max_price": 10},
        {"start_date": "2025-02-01", "end_date": "2025-01-01"},
        {"min_price": -1},
        {"sort": "popularity"},
    ],
)
async def test_catalog_rejects_invalid_criteria(client: AsyncClient, params):
    resp = await client.get("/api/v1/catalog", params=params)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_product_detail_canonical_slug(client: AsyncClient, make_product, category):
    product = make_product("Campera Denim", slug="campera-denim", category=category)

    ok = await client.get(f"/api/v1/catalog/{product.id}/campera-denim")
    assert ok.status_code == 200, ok.text
    assert ok.json()["category"]["name"] == "Camperas"

    moved = await client.get(f"/api/v1/catalog/{product.id}/old-name")
    assert moved.status_code == 301
    assert moved.headers["location"].endswith(f"/api/v1/catalog/{product.id}/campera-denim")


@pytest.mark.asyncio
async def test_product_detail_not_found(client: AsyncClient, make_product):
    hidden = make_product("Oculto", slug="oculto", active=False)

    assert (await client.get(f"/api/v1/catalog/{hidden.id}/oculto")).status_code == 404
    assert (await client.get("/api/v1/catalog/not-a-uuid/oculto")).status_code == 404


def test_build_product_query_defaults_to_newest():
    sql = str(catalog_service.build_product_query(ProductSearch()))
    assert "ORDER BY products.created_at DESC, products.id" in sql
