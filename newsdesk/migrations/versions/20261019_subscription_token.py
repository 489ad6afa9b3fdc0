"""Add subscription_token table for double opt-in confirmation.

Revision ID: 20261019_subscription_token
Revises: 20261018_newsdesk_initial
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_subscription_token"
down_revision = "20261018_newsdesk_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "subscription_token",
        sa.Column("token", sa.String(length=25), primary_key=True),
        sa.Column("subscriber_id", sa.Uuid(), sa.ForeignKey("subscription.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_subscription_token_subscriber_id", "subscription_token", ["subscriber_id"]
    )


def downgrade():
    op.drop_index("ix_subscription_token_subscriber_id", table_name="subscription_token")
    op.drop_table("subscription_token")
