import uuid

import pytest
from httpx import AsyncClient


async def _place_order(client: AsyncClient, headers: dict, product, quantity: int, address: dict) -> dict:
    resp = await client.post(f"/api/v1/cart/add/{product.id}", json={"quantity": quantity}, headers=headers)
    assert resp.status_code == 201, resp.text
    resp = await client.post("/api/v1/checkout/address", json=address, headers=headers)
    assert resp.status_code == 200, resp.text
    resp = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_customer_sees_only_own_orders(
    client: AsyncClient, user_token: str, admin_token: str, auth, make_product, address_payload
):
    product = make_product("Campera", price="10.00", stock=10)
    mine = await _place_order(client, auth(user_token), product, 2, address_payload)
    theirs = await _place_order(client, auth(admin_token), product, 1, address_payload)

    listed = await client.get("/api/v1/orders", headers=auth(user_token))
    assert listed.status_code == 200
    assert [order["id"] for order in listed.json()] == [mine["id"]]

    detail = await client.get(f"/api/v1/orders/{mine['id']}", headers=auth(user_token))
    assert detail.status_code == 200
    assert detail.json()["items"][0]["product_name"] == "Campera"

    foreign = await client.get(f"/api/v1/orders/{theirs['id']}", headers=auth(user_token))
    assert foreign.status_code == 404

    unknown = await client.get(f"/api/v1/orders/{uuid.uuid4()}", headers=auth(user_token))
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_order_snapshot_survives_product_changes(
    client: AsyncClient, user_token: str, admin_token: str, auth, make_product, address_payload
):
    product = make_product("Mochila", price="25.00", stock=5)
    order = await _place_order(client, auth(user_token), product, 1, address_payload)

    await client.put(
        f"/api/v1/products/{product.id}", json={"name": "Mochila Nueva", "price": 99.0}, headers=auth(admin_token)
    )
    await client.delete(f"/api/v1/products/{product.id}", headers=auth(admin_token))

    detail = await client.get(f"/api/v1/orders/{order['id']}", headers=auth(user_token))
    item = detail.json()["items"][0]
    assert item["product_name"] == "Mochila"
    assert item["unit_price"] == pytest.approx(25.0)
    assert item["product_id"] is None
