# storefront/schemas/checkout.py
from typing import Literal

from pydantic import BaseModel

from storefront.schemas.address import AddressDraftFields, AddressRead
from storefront.schemas.cart import CartRead


class AddressDraft(BaseModel):
    """Dirección sugerida para el paso de checkout."""

    source: Literal["cart", "profile", "none"]
    address: AddressDraftFields | None = None


class CheckoutSummary(BaseModel):
    cart: CartRead
    address: AddressRead
    total: float
