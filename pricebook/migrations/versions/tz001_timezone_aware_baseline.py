"""Timezone-aware baseline (alternate line).

A separate starting point for an empty store: paid_at is stored with a time
zone and price counts are fractional.  On PostgreSQL the session time zone is
set to DB_TIMEZONE first.  This line is not merged with "main"; apply it
explicitly with ``upgrade tz_baseline@head`` on a store that has neither.

Revision ID: tz001_timezone_aware_baseline
Revises:
Create Date: 2023-10-06 20:53:54.000000
"""
from alembic import op
import sqlalchemy as sa

from pricebook.config import get_settings

revision = "tz001_timezone_aware_baseline"
down_revision = None
branch_labels = ("tz_baseline",)
depends_on = None


def upgrade() -> None:
    if op.get_context().dialect.name == "postgresql":
        op.execute(sa.text("SET timezone = '%s'" % get_settings().DB_TIMEZONE.replace("'", "''")))

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_products_name"),
    )

    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("merchant_name", sa.Text(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "prices",
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("receipt_id", sa.Integer(), nullable=False),
        sa.Column("count", sa.Float(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["receipt_id"], ["receipts.id"]),
        sa.PrimaryKeyConstraint("product_id", "receipt_id"),
    )


def downgrade() -> None:
    op.drop_table("prices")
    op.drop_table("receipts")
    op.drop_table("products")
