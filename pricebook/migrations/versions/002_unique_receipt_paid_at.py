"""Require unique receipt timestamps.

Collapses receipts that share a paid_at onto the lowest id, moves their prices
to that receipt (summing counts where a product appears on several of the
collapsed receipts), then adds a unique constraint on receipts.paid_at.

The downgrade only drops the constraint; collapsed receipts are not restored.

Revision ID: 002_unique_receipt_paid_at
Revises: 001_initial
Create Date: 2023-10-07 13:47:51.000000
"""
from alembic import context, op

from pricebook.errors import MigrationError
from pricebook.services.dedupe_service import collapse_receipts_by_paid_at, drop_paid_at_constraint

revision = "002_unique_receipt_paid_at"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    if context.is_offline_mode():
        raise MigrationError(
            "002_unique_receipt_paid_at reads existing rows and cannot be rendered as SQL",
            target=revision,
        )
    collapse_receipts_by_paid_at(op.get_bind(), cascade_prices=True, operations=op)


def downgrade() -> None:
    drop_paid_at_constraint(op)
