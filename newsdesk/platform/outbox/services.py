"""Transactional outbox for issue delivery.

Tasks are written by ``enqueue_delivery_tasks`` in the same transaction that
creates the issue, and consumed by the delivery workers with a non-blocking
``FOR UPDATE SKIP LOCKED`` claim.
"""

from __future__ import annotations

import uuid
from typing import Optional, Tuple

import sqlalchemy as sa
from sqlalchemy import func, insert, select

from newsdesk.domains.subscriptions.services import confirmed_emails_query
from newsdesk.extensions import db
from newsdesk.platform.outbox.models import IssueDeliveryTask


def enqueue_delivery_tasks(session, issue_id: uuid.UUID) -> int:
    """
    Stage one delivery task per confirmed subscriber. Caller commits alongside the issue.
    """
    confirmed = confirmed_emails_query().subquery()
    stmt = insert(IssueDeliveryTask).from_select(
        ["newsletter_issue_id", "subscriber_email"],
        select(sa.literal(issue_id, type_=sa.Uuid()), confirmed.c.email),
    )
    result = session.execute(stmt)
    return result.rowcount or 0


def dequeue_task(session) -> Optional[Tuple[uuid.UUID, str]]:
    """
    Lock and return one pending task, skipping rows other workers hold.
    The lock lasts until the caller's transaction ends.
    """
    row = (
        session.query(IssueDeliveryTask.newsletter_issue_id, IssueDeliveryTask.subscriber_email)
        .with_for_update(skip_locked=True)
        .limit(1)
        .first()
    )
    if row is None:
        return None
    return row.newsletter_issue_id, row.subscriber_email


def delete_task(session, issue_id: uuid.UUID, subscriber_email: str) -> bool:
    """Remove a claimed task; False when another worker already removed it."""
    result = session.execute(
        sa.delete(IssueDeliveryTask).where(
            IssueDeliveryTask.newsletter_issue_id == issue_id,
            IssueDeliveryTask.subscriber_email == subscriber_email,
        )
    )
    return result.rowcount == 1


def count_pending(issue_id: Optional[uuid.UUID] = None, session=None) -> int:
    session = session or db.session
    stmt = select(func.count()).select_from(IssueDeliveryTask)
    if issue_id is not None:
        stmt = stmt.where(IssueDeliveryTask.newsletter_issue_id == issue_id)
    return session.execute(stmt).scalar_one()
