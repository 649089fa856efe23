import logging
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy import select

from storefront.core.config import settings
from storefront.core.security import verify_password
from storefront.models.user import PasswordResetToken, User


async def _login(client: AsyncClient, email: str, password: str):
    return await client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


@pytest.mark.asyncio
async def test_register_login_and_me(client: AsyncClient, auth):
    created = await client.post(
        "/api/v1/users",
        json={"email": "nueva@example.com", "password": "Secreta123", "full_name": "Nueva Clienta"},
    )
    assert created.status_code == 201, created.text
    assert created.json()["is_superuser"] is False

    dup = await client.post(
        "/api/v1/users", json={"email": "nueva@example.com", "password": "OtraClave123"}
    )
    assert dup.status_code == 400
    assert dup.json()["detail"] == "Email already registered"

    login = await _login(client, "nueva@example.com", "Secreta123")
    assert login.status_code == 200, login.text
    body = login.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "nueva@example.com"

    claims = jwt.decode(body["access_token"], settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert set(claims["scopes"]) == {"users:me", "cart:write", "orders:read"}

    me = await client.get("/api/v1/users/me", headers=auth(body["access_token"]))
    assert me.status_code == 200
    assert me.json()["last_login_at"] is not None


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient):
    resp = await client.post("/api/v1/users", json={"email": "corta@example.com", "password": "123"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_failed_login_raises_security_alert(client: AsyncClient, normal_user: User, caplog):
    with caplog.at_level(logging.WARNING, logger="storefront.security"):
        resp = await _login(client, normal_user.email, "incorrecta")
    assert resp.status_code == 400
    alert = next(r for r in caplog.records if r.getMessage() == "Failed login attempt")
    assert alert.alert is True
    assert alert.email == normal_user.email


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client: AsyncClient, normal_user: User, db_session):
    normal_user.is_active = False
    db_session.commit()

    resp = await _login(client, normal_user.email, "User1234")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_admin_token_carries_admin_scopes(client: AsyncClient, admin_token: str):
    claims = jwt.decode(admin_token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert "admin" in claims["scopes"]
    assert "products:write" in claims["scopes"]


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token(client: AsyncClient, normal_user: User, auth):
    login = await _login(client, normal_user.email, "User1234")
    refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
    assert refresh.status_code == 200, refresh.text
    me = await client.get("/api/v1/users/me", headers=auth(refresh.json()["access_token"]))
    assert me.status_code == 200

    # Un access token no sirve como refresh
    wrong_type = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["access_token"]})
    assert wrong_type.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_rejected(client: AsyncClient, auth):
    resp = await client.get("/api/v1/users/me", headers=auth("not-a-jwt"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_password_reset_flow(client: AsyncClient, normal_user: User, db_session):
    unknown = await client.post("/api/v1/auth/password-reset/request", json={"email": "nadie@example.com"})
    assert unknown.status_code == 202

    first = await client.post("/api/v1/auth/password-reset/request", json={"email": normal_user.email})
    assert first.status_code == 202
    assert first.json() == unknown.json()
    second = await client.post("/api/v1/auth/password-reset/request", json={"email": normal_user.email})
    assert second.status_code == 202

    # Solo queda vigente el último token emitido
    tokens = db_session.execute(select(PasswordResetToken)).scalars().all()
    assert len(tokens) == 1
    token = tokens[0].token
    assert len(token) == 64

    confirmed = await client.post(
        "/api/v1/auth/password-reset/confirm", json={"token": token, "new_password": "NuevaClave123"}
    )
    assert confirmed.status_code == 200, confirmed.text

    db_session.expire_all()
    user = db_session.get(User, normal_user.id)
    assert verify_password("NuevaClave123", user.hashed_password)
    assert db_session.execute(select(PasswordResetToken)).scalars().all() == []

    reused = await client.post(
        "/api/v1/auth/password-reset/confirm", json={"token": token, "new_password": "OtraClave123"}
    )
    assert reused.status_code == 400
    assert reused.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_expired_reset_token_is_rejected(client: AsyncClient, normal_user: User, db_session):
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    db_session.add(
        PasswordResetToken(
            user_id=normal_user.id,
            token="a" * 64,
            created_at=issued,
            expires_at=issued + timedelta(minutes=60),
        )
    )
    db_session.commit()

    resp = await client.post(
        "/api/v1/auth/password-reset/confirm", json={"token": "a" * 64, "new_password": "NuevaClave123"}
    )
    assert resp.status_code == 400
