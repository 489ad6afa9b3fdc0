"""Subscriber records."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.extensions import db

STATUS_PENDING_CONFIRMATION = "pending_confirmation"
STATUS_CONFIRMED = "confirmed"


class Subscription(db.Model):
    __tablename__ = "subscription"
    __table_args__ = (db.Index("ix_subscription_status", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(db.String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(db.String(256), nullable=False)
    status: Mapped[str] = mapped_column(
        db.String(32), nullable=False, default=STATUS_PENDING_CONFIRMATION
    )
    subscribed_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class SubscriptionToken(db.Model):
    """Confirmation token mailed to a pending subscriber."""

    __tablename__ = "subscription_token"

    token: Mapped[str] = mapped_column(db.String(25), primary_key=True)
    subscriber_id: Mapped[uuid.UUID] = mapped_column(
        db.ForeignKey("subscription.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
