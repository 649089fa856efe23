from . import admin
from . import api_products
from . import auth
from . import cart
from . import catalog
from . import categories
from . import checkout
from . import orders
from . import products
from . import users

__all__ = [
    "admin",
    "api_products",
    "auth",
    "cart",
    "catalog",
    "categories",
    "checkout",
    "orders",
    "products",
    "users",
]
