"""Publish command: idempotent issue creation with transactional delivery fan-out."""

from __future__ import annotations

import logging
from typing import Callable

from newsdesk.domains.newsletters.models.issue_models import NewsletterIssue
from newsdesk.domains.newsletters.services.issue_service import create_issue
from newsdesk.extensions import db
from newsdesk.platform.idempotency import AlreadyCompleted, SavedResponse, complete, reserve
from newsdesk.platform.outbox import enqueue_delivery_tasks

logger = logging.getLogger(__name__)

ResponseRenderer = Callable[[NewsletterIssue, int], SavedResponse]


def publish_issue(
    user_id: int,
    idempotency_key: str,
    *,
    title: str,
    text_content: str,
    html_content: str,
    render_response: ResponseRenderer,
    session=None,
) -> SavedResponse:
    """
    Publish an issue exactly once per (user_id, idempotency_key).

    Reservation, issue insert, delivery fan-out and the saved response share a
    single transaction: either all of them commit or none do. A repeated key
    returns the stored response without touching the issue store or the queue.
    """
    session = session or db.session
    try:
        outcome = reserve(session, user_id, idempotency_key)
        if isinstance(outcome, AlreadyCompleted):
            session.rollback()
            logger.info(
                "Replaying saved response for idempotency key %s (user_id=%s)",
                idempotency_key,
                user_id,
            )
            return outcome.response

        issue = create_issue(
            session,
            title=title,
            text_content=text_content,
            html_content=html_content,
        )
        enqueued = enqueue_delivery_tasks(session, issue.id)
        response = complete(session, user_id, idempotency_key, render_response(issue, enqueued))
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Published newsletter issue %s (user_id=%s, deliveries_enqueued=%s)",
        issue.id,
        user_id,
        enqueued,
    )
    return response
