"""Idempotency ledger model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.extensions import db


class IdempotencyRecord(db.Model):
    """One row per (operator, client key); response columns stay NULL while the command runs."""

    __tablename__ = "idempotency"

    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), primary_key=True)
    idempotency_key: Mapped[str] = mapped_column(db.String(50), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, index=True)
    response_status_code: Mapped[int | None] = mapped_column(db.SmallInteger)
    # [[name, base64(raw value)], ...] in emission order, duplicates kept
    response_headers: Mapped[list | None] = mapped_column(db.JSON)
    response_body: Mapped[bytes | None] = mapped_column(db.LargeBinary)
