"""add variant options

Revision ID: 8d41f6b2c9e7
Revises: 3b9e0c2a7f41
Create Date: 2026-10-19 16:03:27.550912

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8d41f6b2c9e7'
down_revision: Union[str, Sequence[str], None] = '3b9e0c2a7f41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "optiontype",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "variantoption",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("option_type_id", sa.Integer(), sa.ForeignKey("optiontype.id", ondelete="CASCADE"), nullable=False),
        sa.Column("value", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("option_type_id", "value", name="uq_option_type_value"),
    )
    op.create_index("ix_variantoption_option_type_id", "variantoption", ["option_type_id"])

    op.create_table(
        "productvariantoptionlink",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_variant_id", sa.Integer(), sa.ForeignKey("productvariant.id", ondelete="CASCADE"), nullable=False),
        sa.Column("option_id", sa.Integer(), sa.ForeignKey("variantoption.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("product_variant_id", "option_id", name="uq_variant_option"),
    )
    op.create_index("ix_productvariantoptionlink_product_variant_id", "productvariantoptionlink", ["product_variant_id"])
    op.create_index("ix_productvariantoptionlink_option_id", "productvariantoptionlink", ["option_id"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ("productvariantoptionlink", "variantoption", "optiontype"):
        op.drop_table(table)
