"""carts, cart addresses, orders and order snapshots

Revision ID: b52f8e61c4a7
Revises: 7a4e0c2f9d31
Create Date: 2026-09-29 09:05:17.000000
"""
from __future__ import annotations

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b52f8e61c4a7"
down_revision: Union[str, Sequence[str], None] = "7a4e0c2f9d31"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _address_columns() -> list[sa.Column]:
    return [
        sa.Column("primary_address", sa.String(length=255), nullable=False),
        sa.Column("secondary_address", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("state", sa.String(length=120), nullable=True),
        sa.Column("postal_code", sa.String(length=30), nullable=False),
        sa.Column("country", sa.String(length=120), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    # ENUMs idempotentes (evitan "type already exists")
    cartstatus = postgresql.ENUM("active", "ordered", "expired", name="cartstatus", create_type=False)
    cartstatus.create(bind, checkfirst=True)
    orderstatus = postgresql.ENUM(
        "pending", "processing", "shipped", "delivered", "cancelled", "refunded",
        name="orderstatus",
        create_type=False,
    )
    orderstatus.create(bind, checkfirst=True)

    op.create_table(
        "carts",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", cartstatus, nullable=False, server_default=sa.text("'active'::cartstatus")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_carts_user_id_status", "carts", ["user_id", "status"])
    # Barrido diario de carritos inactivos
    op.create_index("ix_carts_status_created_at", "carts", ["status", "created_at"])

    op.create_table(
        "cart_items",
        _uuid_pk(),
        sa.Column("cart_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    op.create_table(
        "cart_addresses",
        _uuid_pk(),
        sa.Column("cart_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_address_columns(),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("cart_id", name="uq_cart_addresses_cart_id"),
    )

    op.create_table(
        "orders",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", orderstatus, nullable=False, server_default=sa.text("'pending'::orderstatus")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_orders_user_id_created_at", "orders", ["user_id", "created_at"])

    op.create_table(
        "order_items",
        _uuid_pk(),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("product_sku", sa.String(length=64), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "order_addresses",
        _uuid_pk(),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_address_columns(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("order_id", name="uq_order_addresses_order_id"),
    )


def downgrade() -> None:
    op.drop_table("order_addresses")
    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_orders_user_id_created_at", table_name="orders")
    op.drop_table("orders")
    op.drop_table("cart_addresses")
    op.drop_table("cart_items")
    op.drop_index("ix_carts_status_created_at", table_name="carts")
    op.drop_index("ix_carts_user_id_status", table_name="carts")
    op.drop_table("carts")

    bind = op.get_bind()
    postgresql.ENUM(name="orderstatus").drop(bind, checkfirst=True)
    postgresql.ENUM(name="cartstatus").drop(bind, checkfirst=True)
