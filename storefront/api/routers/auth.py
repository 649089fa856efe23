from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import scopes_for
from storefront.core.config import settings
from storefront.core.logging import security_alert, security_logger
from storefront.core.metrics import record_login_attempt
from storefront.core.security import create_access_token, create_refresh_token, decode_refresh_token
from storefront.db.operations import commit_async, rollback_async
from storefront.db.session_async import get_async_db
from storefront.middleware import client_ip
from storefront.schemas.auth import (
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
    TokenPair,
    TokenRefresh,
)
from storefront.schemas.user import UserRead
from storefront.services import password_reset_service, user_service
from storefront.services.email_service import send_password_reset_email

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenPair)
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_async_db),
):
    user = await user_service.authenticate(db, form_data.username, form_data.password)
    if not user:
        record_login_attempt("failure")
        security_alert(
            "Failed login attempt",
            email=form_data.username,
            client_ip=client_ip(request),
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )

    record_login_attempt("success")
    user_scopes = scopes_for(user)
    access = create_access_token(subject=user.id, extra={"scopes": user_scopes})
    refresh = create_refresh_token(subject=user.id, extra={"scopes": user_scopes})

    await user_service.record_login(db, user)
    await commit_async(db)

    security_logger().info(
        "User authenticated",
        extra={"user_id": str(user.id), "email": user.email, "client_ip": client_ip(request)},
    )

    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": UserRead.model_validate(user),
    }


@router.post("/refresh", response_model=TokenRefresh)
async def refresh_token(payload: RefreshRequest):
    try:
        data = decode_refresh_token(payload.refresh_token)
        user_id = data["sub"]
        token_scopes = data.get("scopes", []) or []
    except (JWTError, KeyError) as exc:
        security_alert("Refresh token validation failed", reason=str(exc))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from exc

    new_access = create_access_token(subject=user_id, extra={"scopes": token_scopes})
    return {
        "access_token": new_access,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.post("/password-reset/request", status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(payload: PasswordResetRequest, db: AsyncSession = Depends(get_async_db)):
    # Misma respuesta exista o no el email
    try:
        issued = await password_reset_service.request_reset(db, payload.email)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise

    if issued:
        user, token = issued
        base = settings.FRONTEND_URL or f"{settings.API_BASE_URL}{settings.API_V1_STR}"
        send_password_reset_email(user.email, f"{base}/auth/password-reset/confirm?token={token}")
    return {"message": "If the email is registered, a reset link has been sent."}


@router.post("/password-reset/confirm")
async def confirm_password_reset(payload: PasswordResetConfirm, db: AsyncSession = Depends(get_async_db)):
    try:
        await password_reset_service.reset_password(db, payload.token, payload.new_password)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    return {"message": "Password updated successfully"}
