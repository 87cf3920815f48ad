"""Add users table holding Google Drive OAuth tokens.

Revision ID: 003_users
Revises: 002_unique_receipt_paid_at
Create Date: 2023-10-08 14:29:44.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "003_users"
down_revision = "002_unique_receipt_paid_at"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("google_drive_access_token", sa.Text(), nullable=True),
        sa.Column("google_drive_access_token_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("google_drive_refresh_token", sa.Text(), nullable=True),
        sa.Column("google_drive_refresh_token_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )


def downgrade() -> None:
    op.drop_table("users")
