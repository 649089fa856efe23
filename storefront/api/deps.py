# storefront/api/deps.py
from datetime import date
from uuid import UUID

from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.security import decode_access_token
from storefront.db.session_async import get_async_db
from storefront.domain.enums import ProductSort, StockAvailability
from storefront.models.user import User
from storefront.schemas.product import ProductSearch
from storefront.schemas.user import TokenPayload
from storefront.services import user_service
from storefront.services.exceptions import ResourceNotFoundError


OAUTH_SCOPES = {
    "admin": "Acceso total de administrador.",
    "users:me": "Acceso al perfil del propio usuario.",
    "cart:write": "Permiso para gestionar el carrito y el checkout.",
    "orders:read": "Permiso para leer las órdenes propias.",
    "products:write": "Permiso para crear, actualizar y eliminar productos.",
}

CUSTOMER_SCOPES = ["users:me", "cart:write", "orders:read"]
ADMIN_SCOPES = ["admin", "products:write"]


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    scopes=OAUTH_SCOPES,
)


def scopes_for(user: User) -> list[str]:
    """Centraliza la asignación de scopes según el rol del usuario."""
    scopes = list(CUSTOMER_SCOPES)
    if user.is_superuser:
        scopes.extend(ADMIN_SCOPES)
    return scopes


def _decode_token(token: str) -> tuple[TokenPayload, list[str]]:
    payload = decode_access_token(token)
    token_data = TokenPayload(**payload)
    token_scopes: list[str] = payload.get("scopes", []) or []
    return token_data, token_scopes


async def get_current_user(
    security_scopes: SecurityScopes,
    db: AsyncSession = Depends(get_async_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    cred_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": f'Bearer scope="{security_scopes.scope_str}"'},
    )

    try:
        token_data, token_scopes = _decode_token(token)
    except JWTError:
        raise cred_exc

    if token_data.sub is None:
        raise cred_exc

    try:
        user = await user_service.get_user(db, token_data.sub)
    except ResourceNotFoundError:
        raise cred_exc

    if security_scopes.scopes and "admin" not in token_scopes:
        for scope in security_scopes.scopes:
            if scope not in token_scopes:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Not enough permissions",
                    headers={"WWW-Authenticate": f'Bearer scope="{security_scopes.scope_str}"'},
                )
    return user


def get_current_active_user(
    current_user: User = Security(get_current_user, scopes=["users:me"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_current_shopper(
    current_user: User = Security(get_current_user, scopes=["cart:write"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_current_admin(
    current_user: User = Security(get_current_user, scopes=["admin"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    if not current_user.is_superuser:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return current_user


def product_search_params(
    name: str | None = Query(None, description="Texto contenido en el nombre"),
    sku: str | None = Query(None),
    short_description: str | None = Query(None),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    stock: int | None = Query(None, ge=0),
    availability: StockAvailability | None = Query(None),
    on_sale: bool | None = Query(None),
    category_id: UUID | None = Query(None, alias="category"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    sort: ProductSort | None = Query(None),
) -> ProductSearch:
    try:
        return ProductSearch(
            name=name,
            sku=sku,
            short_description=short_description,
            min_price=min_price,
            max_price=max_price,
            stock=stock,
            availability=availability,
            on_sale=on_sale,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
            sort=sort,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[error["msg"] for error in exc.errors()],
        ) from exc
