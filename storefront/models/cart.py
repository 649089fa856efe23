# storefront/models/cart.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.session import Base
from storefront.db.types import GUID, utcnow
from storefront.domain.enums import CartStatus
from storefront.models.product import Product


class Cart(Base):
    __tablename__ = "carts"
    __table_args__ = (
        Index("ix_carts_user_id_status", "user_id", "status"),
        Index("ix_carts_status_created_at", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[CartStatus] = mapped_column(Enum(CartStatus), default=CartStatus.active, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    items: Mapped[list["CartItem"]] = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="CartItem.created_at",
    )
    address: Mapped["CartAddress | None"] = relationship(
        "CartAddress",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
        lazy="selectin",
    )


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4, nullable=False)
    cart_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    # SET NULL: el ítem sobrevive al borrado del producto y se ignora en el total
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("products.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    cart: Mapped[Cart] = relationship("Cart", back_populates="items")
    product: Mapped[Product | None] = relationship(Product, lazy="joined")

    @property
    def line_total(self) -> Decimal:
        if self.product is None:
            return Decimal("0")
        return max(Decimal("0"), Decimal(str(self.product.price))) * max(0, self.quantity)


class CartAddress(Base):
    __tablename__ = "cart_addresses"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4, nullable=False)
    cart_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("carts.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    primary_address: Mapped[str] = mapped_column(String(255), nullable=False)
    secondary_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city:        Mapped[str] = mapped_column(String(120), nullable=False)
    state:       Mapped[str | None] = mapped_column(String(120), nullable=True)
    postal_code: Mapped[str] = mapped_column(String(30), nullable=False)
    country:     Mapped[str] = mapped_column(String(120), nullable=False)

    cart: Mapped[Cart] = relationship("Cart", back_populates="address")
