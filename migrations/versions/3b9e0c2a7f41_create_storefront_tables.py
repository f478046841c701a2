"""create storefront tables

Revision ID: 3b9e0c2a7f41
Revises:
Create Date: 2026-10-19 10:12:44.218113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b9e0c2a7f41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)


def ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("public_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("role", sa.String(32), nullable=False),
        ts("created_at"), ts("updated_at"), ts("deleted_at", nullable=True),
    )
    op.create_index("ix_users_public_id", "users", ["public_id"], unique=True)

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        ts("created_at"), ts("updated_at"),
    )

    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_price", MONEY, nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("min_stock", sa.Integer(), nullable=False),
        sa.Column("supplier", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("featured", sa.Boolean(), nullable=False),
        ts("created_at"), ts("updated_at"),
    )

    op.create_table(
        "productcategorylink",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("category.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("product_id", "category_id", name="uq_product_category"),
    )
    op.create_index("ix_productcategorylink_product_id", "productcategorylink", ["product_id"])
    op.create_index("ix_productcategorylink_category_id", "productcategorylink", ["category_id"])

    op.create_table(
        "productimage",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id", ondelete="CASCADE"), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        ts("created_at"),
    )
    op.create_index("ix_productimage_product_id", "productimage", ["product_id"])

    op.create_table(
        "productvariant",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False, unique=True),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("discount_price", MONEY, nullable=True),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=True),
        ts("discount_start", nullable=True), ts("discount_end", nullable=True),
        ts("created_at"),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_variant_stock_non_negative"),
    )
    op.create_index("ix_productvariant_product_id", "productvariant", ["product_id"])

    op.create_table(
        "cart",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("session_token", sa.String(128), nullable=True),
        ts("created_at"), ts("updated_at"),
        sa.CheckConstraint("(user_id IS NULL) <> (session_token IS NULL)", name="ck_cart_single_owner"),
    )
    op.create_index("ix_cart_user_id", "cart", ["user_id"], unique=True)
    op.create_index("ix_cart_session_token", "cart", ["session_token"], unique=True)

    op.create_table(
        "cartitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("cart.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_variant_id", sa.Integer(), sa.ForeignKey("productvariant.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", MONEY, nullable=False),
        ts("created_at"),
        sa.UniqueConstraint("cart_id", "product_variant_id", name="uq_cart_variant"),
        sa.CheckConstraint("quantity > 0", name="ck_cart_item_quantity_positive"),
    )
    op.create_index("ix_cartitem_cart_id", "cartitem", ["cart_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("shipping_address", sa.Text(), nullable=False),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("shipping_cost", MONEY, nullable=False),
        sa.Column("tax", MONEY, nullable=False),
        sa.Column("total_amount", MONEY, nullable=False),
        ts("created_at"), ts("updated_at"),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "orderitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_variant_id", sa.Integer(), sa.ForeignKey("productvariant.id", ondelete="SET NULL"), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("product_image", sa.String(1024), nullable=True),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
    )
    op.create_index("ix_orderitem_order_id", "orderitem", ["order_id"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ("orderitem", "orders", "cartitem", "cart", "productvariant", "productimage",
                  "productcategorylink", "product", "category", "users"):
        op.drop_table(table)
