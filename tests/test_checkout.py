import logging
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from storefront.domain.enums import CartStatus, OrderStatus
from storefront.models.cart import Cart
from storefront.models.order import OrderShop
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.address import AddressPayload
from storefront.services import cart_service, checkout_service, email_service, product_service
from storefront.services.exceptions import EmptyCartError, InsufficientStockError, MissingAddressError
from storefront.tasks import email as email_tasks


async def _fill_cart(client: AsyncClient, headers: dict, *lines) -> None:
    for product, quantity in lines:
        resp = await client.post(f"/api/v1/cart/add/{product.id}", json={"quantity": quantity}, headers=headers)
        assert resp.status_code == 201, resp.text


@pytest.mark.asyncio
async def test_checkout_happy_path(
    client: AsyncClient, user_token: str, auth, make_product, address_payload, db_session
):
    headers = auth(user_token)
    campera = make_product("Campera", price="49.99", stock=5, discount_price=10)
    gorra = make_product("Gorra", price="10.00", stock=2)
    campera_id, gorra_id = campera.id, gorra.id
    await _fill_cart(client, headers, (campera, 2), (gorra, 2))

    saved = await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)
    assert saved.status_code == 200, saved.text
    assert saved.json()["address"]["city"] == "Córdoba"

    summary = await client.get("/api/v1/checkout/summary", headers=headers)
    assert summary.status_code == 200, summary.text
    assert summary.json()["total"] == pytest.approx(119.98)
    assert summary.json()["address"]["postal_code"] == "5000"

    preview = await client.get("/api/v1/checkout/confirm", headers=headers)
    assert preview.status_code == 200
    assert preview.json()["total"] == summary.json()["total"]

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 201, confirm.text
    order = confirm.json()
    assert order["status"] == "pending"
    assert order["total_amount"] == pytest.approx(119.98)
    assert order["address"]["primary_address"] == address_payload["primary_address"]

    by_name = {item["product_name"]: item for item in order["items"]}
    assert by_name["Campera"]["quantity"] == 2
    assert by_name["Campera"]["unit_price"] == pytest.approx(49.99)
    assert by_name["Campera"]["discount"] == 10
    assert by_name["Campera"]["subtotal"] == pytest.approx(99.98)
    assert by_name["Gorra"]["subtotal"] == pytest.approx(20.00)

    db_session.expire_all()
    assert db_session.get(Product, campera_id).stock == 3
    assert db_session.get(Product, gorra_id).stock == 0
    cart = db_session.execute(select(Cart)).scalar_one()
    assert cart.status == CartStatus.ordered

    # El siguiente acceso arranca un carrito nuevo y vacío
    fresh = await client.get("/api/v1/cart", headers=headers)
    assert fresh.json()["items"] == []
    assert fresh.json()["id"] != str(cart.id)


@pytest.mark.asyncio
async def test_checkout_with_empty_cart_is_conflict(client: AsyncClient, user_token: str, auth, address_payload):
    headers = auth(user_token)

    summary = await client.get("/api/v1/checkout/summary", headers=headers)
    assert summary.status_code == 409
    assert summary.json()["detail"] == "Your cart is empty."

    address = await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)
    assert address.status_code == 409

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 409


@pytest.mark.asyncio
async def test_checkout_requires_address(client: AsyncClient, user_token: str, auth, make_product):
    headers = auth(user_token)
    await _fill_cart(client, headers, (make_product("Remera", stock=3), 1))

    summary = await client.get("/api/v1/checkout/summary", headers=headers)
    assert summary.status_code == 409
    assert "address" in summary.json()["detail"]

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 409


@pytest.mark.asyncio
async def test_checkout_is_all_or_nothing(
    client: AsyncClient, user_token: str, auth, make_product, address_payload, db_session
):
    headers = auth(user_token)
    plenty = make_product("Abundante", stock=10)
    scarce = make_product("Escaso", stock=3)
    plenty_id, scarce_id = plenty.id, scarce.id
    await _fill_cart(client, headers, (plenty, 4), (scarce, 3))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)

    # Otro comprador se lleva el stock entre el carrito y la confirmación
    db_session.get(Product, scarce_id).stock = 1
    db_session.commit()

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 400, confirm.text
    assert "Escaso" in confirm.json()["detail"]

    db_session.expire_all()
    assert db_session.get(Product, plenty_id).stock == 10
    assert db_session.get(Product, scarce_id).stock == 1
    assert db_session.execute(select(func.count(OrderShop.id))).scalar_one() == 0
    assert db_session.execute(select(Cart)).scalar_one().status == CartStatus.active


@pytest.mark.asyncio
async def test_checkout_rejects_deactivated_product(
    client: AsyncClient, user_token: str, auth, make_product, address_payload, db_session
):
    headers = auth(user_token)
    product = make_product("Discontinuado", stock=5)
    product_id = product.id
    await _fill_cart(client, headers, (product, 1))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)

    db_session.get(Product, product_id).active = False
    db_session.commit()

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 409
    db_session.expire_all()
    assert db_session.get(Product, product_id).stock == 5


@pytest.mark.asyncio
async def test_address_draft_prefers_cart_then_profile(
    client: AsyncClient, user_token: str, auth, make_product, address_payload
):
    headers = auth(user_token)

    nothing = await client.get("/api/v1/checkout/address", headers=headers)
    assert nothing.json() == {"source": "none", "address": None}

    profile = await client.put(
        "/api/v1/users/me/profile",
        json={"primary_address": "Perfil 1", "city": "Mendoza", "country": "Argentina"},
        headers=headers,
    )
    assert profile.status_code == 200, profile.text
    from_profile = await client.get("/api/v1/checkout/address", headers=headers)
    assert from_profile.json()["source"] == "profile"
    assert from_profile.json()["address"]["city"] == "Mendoza"

    await _fill_cart(client, headers, (make_product("Campera", stock=2), 1))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)
    from_cart = await client.get("/api/v1/checkout/address", headers=headers)
    assert from_cart.json()["source"] == "cart"
    assert from_cart.json()["address"]["city"] == "Córdoba"


@pytest.mark.asyncio
async def test_confirm_checkout_service_errors(async_db_session, normal_user: User, make_product, address_payload):
    product = make_product("Lámpara", price="30.00", stock=2)
    user = await async_db_session.get(User, normal_user.id)

    with pytest.raises(EmptyCartError):
        await checkout_service.confirm_checkout(async_db_session, user)

    product = await cart_service.get_product(async_db_session, product.id)
    await cart_service.add_product(async_db_session, user, product, 2)
    with pytest.raises(MissingAddressError):
        await checkout_service.confirm_checkout(async_db_session, user)

    product.stock = 1
    await async_db_session.flush()
    await checkout_service.save_address(async_db_session, user, AddressPayload(**address_payload))
    with pytest.raises(InsufficientStockError):
        await checkout_service.confirm_checkout(async_db_session, user)

    product.stock = 5
    await async_db_session.flush()
    order = await checkout_service.confirm_checkout(async_db_session, user)
    assert order.status == OrderStatus.pending
    assert order.total_amount == Decimal("60.00")
    assert product.stock == 3


@pytest.mark.asyncio
async def test_checkout_skips_lines_of_deleted_products(
    client: AsyncClient, user_token: str, admin_token: str, auth, make_product, address_payload, db_session
):
    headers = auth(user_token)
    doomed = make_product("Descontinuado", price="10.00", stock=5)
    kept = make_product("Vigente", price="4.00", stock=5)
    doomed_id, kept_id = doomed.id, kept.id
    await _fill_cart(client, headers, (doomed, 2), (kept, 1))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)

    deleted = await client.delete(f"/api/v1/products/{doomed_id}", headers=auth(admin_token))
    assert deleted.status_code == 204

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 201, confirm.text
    order = confirm.json()
    assert [item["product_name"] for item in order["items"]] == ["Vigente"]
    assert order["total_amount"] == pytest.approx(4.0)

    db_session.expire_all()
    assert db_session.get(Product, kept_id).stock == 4
    assert db_session.execute(select(Cart)).scalar_one().status == CartStatus.ordered


@pytest.mark.asyncio
async def test_cart_with_only_deleted_products_is_empty_at_checkout(
    async_db_session, normal_user: User, make_product, address_payload
):
    product = make_product("Efímero", stock=3)
    user = await async_db_session.get(User, normal_user.id)
    product = await cart_service.get_product(async_db_session, product.id)
    await cart_service.add_product(async_db_session, user, product, 1)
    await checkout_service.save_address(async_db_session, user, AddressPayload(**address_payload))

    await product_service.delete_product(async_db_session, product)

    with pytest.raises(EmptyCartError):
        await checkout_service.confirm_checkout(async_db_session, user)


@pytest.mark.asyncio
async def test_confirmation_email_is_sent_after_checkout(
    client: AsyncClient, user_token: str, normal_user: User, auth, make_product, address_payload, monkeypatch
):
    sent = []
    monkeypatch.setattr(email_tasks, "deliver_email", lambda to, subject, body: sent.append((to, subject, body)))
    headers = auth(user_token)
    await _fill_cart(client, headers, (make_product("Campera", price="49.99", stock=5), 1))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)

    confirm = await client.post("/api/v1/checkout/confirm", headers=headers)
    assert confirm.status_code == 201, confirm.text

    confirmations = [message for message in sent if message[1].endswith("Order confirmation")]
    assert len(confirmations) == 1
    to, _, body = confirmations[0]
    assert to == normal_user.email
    assert confirm.json()["id"] in body
    assert "Campera" in body


@pytest.mark.asyncio
async def test_confirmation_email_failure_keeps_order(
    client: AsyncClient, user_token: str, auth, make_product, address_payload, db_session, monkeypatch, caplog
):
    def _broken(*args):
        raise RuntimeError("broker unavailable")

    monkeypatch.setattr(email_service, "_enqueue_email", _broken)
    headers = auth(user_token)
    await _fill_cart(client, headers, (make_product("Remera", stock=2), 1))
    await client.post("/api/v1/checkout/address", json=address_payload, headers=headers)

    with caplog.at_level(logging.ERROR, logger="storefront.order"):
        confirm = await client.post("/api/v1/checkout/confirm", headers=headers)

    assert confirm.status_code == 201, confirm.text
    record = next(r for r in caplog.records if r.getMessage() == "Order confirmation email failed")
    assert record.name == "storefront.order"
    assert record.order_id == confirm.json()["id"]
    assert db_session.execute(select(func.count(OrderShop.id))).scalar_one() == 1
