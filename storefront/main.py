# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.error_handlers import register_exception_handlers
from storefront.api.routers import (
    admin,
    api_products,
    auth,
    cart,
    catalog,
    categories,
    checkout,
    orders,
    products,
    users,
)
from storefront.core.config import settings
from storefront.core.logging import setup_logging
from storefront.core.metrics import export_metrics
from storefront.initial_data import create_initial_admin_user
from storefront.middleware import ObservabilityMiddleware

# --- Registro de modelos (Alembic) y tareas (Celery) ---
import storefront.models.cart   # noqa: F401
import storefront.models.order  # noqa: F401
import storefront.tasks         # noqa: F401

TAGS_METADATA = [
    {"name": "auth", "description": "Login, refresh tokens y recuperación de contraseña."},
    {"name": "users", "description": "Registro, cuenta y perfil de cliente."},
    {"name": "catalog", "description": "Catálogo público con filtros y orden."},
    {"name": "api", "description": "API JSON de productos con sobre status/message/data."},
    {"name": "categories", "description": "Categorías de productos."},
    {"name": "products", "description": "Gestión de productos (administración)."},
    {"name": "cart", "description": "Carrito de compras del usuario."},
    {"name": "checkout", "description": "Dirección, resumen y confirmación de compra."},
    {"name": "orders", "description": "Órdenes del cliente."},
    {"name": "admin", "description": "Panel, usuarios y órdenes (administración)."},
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    await create_initial_admin_user()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    description=(
        "Storefront API.\n\n"
        "- **Catalog**: búsqueda y detalle de productos.\n"
        "- **Cart / Checkout**: carrito, dirección y confirmación de la orden.\n"
        "- **Admin**: productos, categorías, usuarios y órdenes.\n\n"
        "Usa el botón **Authorize** para probar los endpoints protegidos."
    ),
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
    swagger_ui_parameters={"persistAuthorization": True, "displayRequestDuration": True},
)

# --- Middlewares ---
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# --- Routers ---
app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(users.router, prefix=settings.API_V1_STR)
app.include_router(categories.router, prefix=settings.API_V1_STR)
app.include_router(products.router, prefix=settings.API_V1_STR)
app.include_router(catalog.router, prefix=settings.API_V1_STR)
app.include_router(cart.router, prefix=settings.API_V1_STR)
app.include_router(checkout.router, prefix=settings.API_V1_STR)
app.include_router(orders.router, prefix=settings.API_V1_STR)
app.include_router(admin.router, prefix=settings.API_V1_STR)
# La API JSON pública vive fuera del prefijo versionado
app.include_router(api_products.router)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    payload, content_type = export_metrics()
    return Response(content=payload, media_type=content_type)


@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "docs_url": "/docs", "redoc_url": "/redoc"}
