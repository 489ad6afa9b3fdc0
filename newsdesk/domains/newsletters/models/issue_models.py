"""Newsletter issue model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.extensions import db


class NewsletterIssue(db.Model):
    __tablename__ = "newsletter_issue"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    text_content: Mapped[str] = mapped_column(db.Text, nullable=False)
    html_content: Mapped[str] = mapped_column(db.Text, nullable=False)
    published_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, index=True)
