"""Core table definitions for the head of the main migration line.

These mirror what ``alembic upgrade main@head`` produces.  They are used as
Alembic's ``target_metadata``, by the drift check, and by data migrations that
need to stage rows.  Keep them in step with ``pricebook/migrations/versions``.
"""
import logging
from typing import List

import sqlalchemy as sa

from pricebook.database import engine

logger = logging.getLogger(__name__)

metadata = sa.MetaData()

products = sa.Table(
    "products",
    metadata,
    sa.Column("id", sa.Integer(), primary_key=True),
    sa.Column("name", sa.Text(), nullable=False),
    sa.UniqueConstraint("name", name="uq_products_name"),
)

receipts = sa.Table(
    "receipts",
    metadata,
    sa.Column("id", sa.Integer(), primary_key=True),
    sa.Column("merchant_name", sa.Text(), nullable=False),
    sa.Column("paid_at", sa.DateTime(), nullable=False),
    sa.UniqueConstraint("paid_at", name="uq_receipts_paid_at"),
)

prices = sa.Table(
    "prices",
    metadata,
    sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
    sa.Column("receipt_id", sa.Integer(), sa.ForeignKey("receipts.id"), nullable=False),
    sa.Column("count", sa.Integer(), nullable=False),
    sa.Column("unit_price", sa.Float(), nullable=False),
    sa.PrimaryKeyConstraint("product_id", "receipt_id"),
)

users = sa.Table(
    "users",
    metadata,
    sa.Column("id", sa.Integer(), primary_key=True),
    sa.Column("email", sa.Text(), nullable=False),
    sa.Column("google_drive_access_token", sa.Text(), nullable=True),
    sa.Column("google_drive_access_token_created_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("google_drive_refresh_token", sa.Text(), nullable=True),
    sa.Column("google_drive_refresh_token_created_at", sa.DateTime(timezone=True), nullable=True),
    sa.UniqueConstraint("email", name="uq_users_email"),
)


def create_schema(bind=None) -> List[str]:
    """Create any missing tables of the head schema and return their names.

    Existing tables are left as they are, so this can run any number of times,
    including against a store already migrated to ``main@head``.  Nothing is
    recorded in ``alembic_version``; use the migration runner for that.
    """
    if bind is None:
        with engine.begin() as conn:
            return create_schema(conn)

    existing = set(sa.inspect(bind).get_table_names())
    missing = [t.name for t in metadata.sorted_tables if t.name not in existing]
    metadata.create_all(bind, checkfirst=True)
    if missing:
        logger.info("Created tables: %s", ", ".join(missing))
    else:
        logger.debug("All tables already exist")
    return missing
