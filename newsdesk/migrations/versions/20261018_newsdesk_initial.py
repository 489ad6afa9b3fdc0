"""Initial newsdesk schema: operators, subscribers, issues, delivery queue, idempotency ledger.

Revision ID: 20261018_newsdesk_initial
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_newsdesk_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "subscription",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending_confirmation"),
        sa.Column("subscribed_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("email", name="uq_subscription_email"),
    )
    op.create_index("ix_subscription_status", "subscription", ["status"])

    op.create_table(
        "newsletter_issue",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("text_content", sa.Text(), nullable=False),
        sa.Column("html_content", sa.Text(), nullable=False),
        sa.Column("published_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_newsletter_issue_published_at", "newsletter_issue", ["published_at"])

    op.create_table(
        "issue_delivery_queue",
        sa.Column(
            "newsletter_issue_id",
            sa.Uuid(),
            sa.ForeignKey("newsletter_issue.id"),
            nullable=False,
        ),
        sa.Column("subscriber_email", sa.String(length=320), nullable=False),
        sa.PrimaryKeyConstraint(
            "newsletter_issue_id", "subscriber_email", name="pk_issue_delivery_queue"
        ),
    )

    op.create_table(
        "idempotency",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("idempotency_key", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("response_status_code", sa.SmallInteger(), nullable=True),
        sa.Column("response_headers", sa.JSON(), nullable=True),
        sa.Column("response_body", sa.LargeBinary(), nullable=True),
        sa.PrimaryKeyConstraint("user_id", "idempotency_key", name="pk_idempotency"),
    )
    op.create_index("ix_idempotency_created_at", "idempotency", ["created_at"])


def downgrade():
    op.drop_index("ix_idempotency_created_at", table_name="idempotency")
    op.drop_table("idempotency")
    op.drop_table("issue_delivery_queue")
    op.drop_index("ix_newsletter_issue_published_at", table_name="newsletter_issue")
    op.drop_table("newsletter_issue")
    op.drop_index("ix_subscription_status", table_name="subscription")
    op.drop_table("subscription")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
