import uuid

import pytest
from httpx import AsyncClient

from storefront.services import catalog_service


@pytest.mark.asyncio
async def test_list_envelope_and_paging(client: AsyncClient, make_product, category):
    for index in range(25):
        make_product(f"Producto {index:02d}", category=category if index == 0 else None)
    make_product("Inactivo", active=False)

    resp = await client.get("/api/products")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["message"] == "Products retrieved successfully"
    assert len(body["data"]) == 10

    capped = await client.get("/api/products", params={"limit": 100})
    assert len(capped.json()["data"]) == 20

    last = await client.get("/api/products", params={"limit": 20, "page": 2})
    assert len(last.json()["data"]) == 5

    # Valores no numéricos vuelven a los defaults
    lenient = await client.get("/api/products", params={"page": "abc", "limit": "x"})
    assert lenient.status_code == 200
    assert len(lenient.json()["data"]) == 10

    names = {item["name"] for page in (1, 2) for item in
             (await client.get("/api/products", params={"limit": 20, "page": page})).json()["data"]}
    assert "Inactivo" not in names


@pytest.mark.asyncio
async def test_product_payload_shape(client: AsyncClient, make_product, category):
    product = make_product("Campera", price="49.90", stock=3, category=category, discount_price=15)

    resp = await client.get(f"/api/products/{product.id}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["id"] == str(product.id)
    assert data["price"] == pytest.approx(49.9)
    assert data["discount_price"] == 15
    assert data["stock"] == 3
    assert data["category"] == "Camperas"
    assert resp.json()["message"] == "Product retrieved successfully"


@pytest.mark.asyncio
async def test_detail_not_found_envelope(client: AsyncClient, make_product):
    hidden = make_product("Oculto", active=False)

    for product_id in (uuid.uuid4(), hidden.id, "not-a-uuid"):
        resp = await client.get(f"/api/products/{product_id}")
        assert resp.status_code == 404
        assert resp.json() == {"status": "error", "message": "Product not found", "data": None}


@pytest.mark.asyncio
async def test_search_by_name_and_price(client: AsyncClient, make_product):
    make_product("Campera Denim", price="120.00")
    make_product("Campera Liviana", price="80.00")
    make_product("Mochila", price="45.00")

    resp = await client.get("/api/products/search", params={"name": "campera", "maxPrice": "100"})
    assert resp.status_code == 200
    assert [item["name"] for item in resp.json()["data"]] == ["Campera Liviana"]

    everything = await client.get("/api/products/search", params={"minPrice": "", "maxPrice": ""})
    assert len(everything.json()["data"]) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, message",
    [
        ({"minPrice": "cheap"}, "Invalid parameter: minPrice must be a number."),
        ({"maxPrice": "1e"}, "Invalid parameter: maxPrice must be a number."),
        ({"minPrice": "nan"}, "Invalid parameter: minPrice must be a number."),
        ({"maxPrice": "inf"}, "Invalid parameter: maxPrice must be a number."),
        ({"minPrice": "50", "maxPrice": "10"}, "Invalid price range: minPrice cannot be greater than maxPrice."),
        ({"minPrice": "-5"}, "Invalid parameter: prices cannot be negative."),
    ],
)
async def test_search_rejects_bad_prices(client: AsyncClient, params, message):
    resp = await client.get("/api/products/search", params=params)
    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": message, "data": None}


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(client: AsyncClient, monkeypatch):
    async def _boom(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(catalog_service, "search_products", _boom)
    resp = await client.get("/api/products")
    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "An unexpected error occurred", "data": None}
