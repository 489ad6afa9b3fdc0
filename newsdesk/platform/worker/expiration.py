"""Idempotency ledger expiration sweeper."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from newsdesk.extensions import db
from newsdesk.platform.idempotency.models import IdempotencyRecord
from newsdesk.platform.worker.config import WorkerConfig

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def delete_expired(session=None, ttl: timedelta = DEFAULT_TTL, now: Optional[datetime] = None) -> int:
    """Delete ledger rows created before ``now - ttl`` and commit. Returns rows removed."""
    session = session or db.session
    cutoff = (now or datetime.utcnow()) - ttl
    result = session.execute(delete(IdempotencyRecord).where(IdempotencyRecord.created_at < cutoff))
    session.commit()
    return result.rowcount or 0


def run_expiration_sweeper(
    app,
    config: Optional[WorkerConfig] = None,
    stop_event: Optional[threading.Event] = None,
) -> None:
    cfg = config or WorkerConfig.from_env()
    stop = stop_event or threading.Event()

    with app.app_context():
        logger.info(
            "Starting idempotency sweeper (ttl=%s, interval=%ss)",
            cfg.idempotency_ttl,
            cfg.sweep_interval,
        )
        try:
            while not stop.is_set():
                try:
                    removed = delete_expired(ttl=cfg.idempotency_ttl)
                    if removed:
                        logger.info("Removed %s expired idempotency records", removed)
                except SQLAlchemyError:
                    db.session.rollback()
                    logger.exception("Database error while sweeping idempotency records")
                stop.wait(cfg.sweep_interval)
        finally:
            db.session.remove()
