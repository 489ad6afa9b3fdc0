"""Issue delivery queue: one row per (issue, recipient) still to be attempted."""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.extensions import db


class IssueDeliveryTask(db.Model):
    __tablename__ = "issue_delivery_queue"

    newsletter_issue_id: Mapped[uuid.UUID] = mapped_column(
        db.ForeignKey("newsletter_issue.id"), primary_key=True
    )
    subscriber_email: Mapped[str] = mapped_column(db.String(320), primary_key=True)
