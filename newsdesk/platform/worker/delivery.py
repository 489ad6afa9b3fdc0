"""Issue delivery worker: claim one task, attempt one send, delete the task."""

from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from newsdesk.domains.newsletters.services.issue_service import get_issue
from newsdesk.domains.subscriptions.email import SubscriberEmail
from newsdesk.extensions import db
from newsdesk.platform.email.client import EmailDeliveryError
from newsdesk.platform.outbox import delete_task, dequeue_task
from newsdesk.platform.worker.config import WorkerConfig

logger = logging.getLogger(__name__)


class ExecutionOutcome(str, Enum):
    TASK_COMPLETED = "task_completed"
    EMPTY_QUEUE = "empty_queue"
    FAILED = "failed"


def _deliver(session, email_client, issue_id: uuid.UUID, raw_email: str) -> None:
    """Attempt a single send. Invalid recipients and send failures are logged, not retried."""
    try:
        recipient = SubscriberEmail.parse(raw_email)
    except ValueError as exc:
        logger.error(
            "Skipping a confirmed subscriber, stored contact details are invalid "
            "(newsletter_issue_id=%s, subscriber_email=%s): %s",
            issue_id,
            raw_email,
            exc,
        )
        return

    issue = get_issue(issue_id, session=session)
    if issue is None:
        logger.error("Delivery task references missing newsletter issue %s", issue_id)
        return

    try:
        email_client.send_email(recipient, issue.title, issue.html_content, issue.text_content)
    except EmailDeliveryError as exc:
        logger.error(
            "Failed to deliver issue to a confirmed subscriber, skipping "
            "(newsletter_issue_id=%s, subscriber_email=%s): %s",
            issue_id,
            raw_email,
            exc,
        )
        return
    except Exception:
        logger.exception(
            "Unexpected error from the e-mail client, skipping "
            "(newsletter_issue_id=%s, subscriber_email=%s)",
            issue_id,
            raw_email,
        )
        return
    logger.info("Delivered newsletter issue %s to %s", issue_id, raw_email)


def try_execute_task(email_client, session=None) -> ExecutionOutcome:
    """
    Run one worker iteration in a single transaction.

    The claimed row stays locked (``SKIP LOCKED`` for everybody else) until
    commit. It is deleted before the send so that a store without row locks
    still lets only one claimant through.
    """
    session = session or db.session
    try:
        task = dequeue_task(session)
        if task is None:
            session.commit()
            return ExecutionOutcome.EMPTY_QUEUE

        issue_id, raw_email = task
        if not delete_task(session, issue_id, raw_email):
            session.commit()
            logger.debug("Task (%s, %s) was taken by another worker", issue_id, raw_email)
            return ExecutionOutcome.TASK_COMPLETED

        _deliver(session, email_client, issue_id, raw_email)
        session.commit()
        return ExecutionOutcome.TASK_COMPLETED
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Database error while executing delivery task")
        return ExecutionOutcome.FAILED
    except Exception:
        session.rollback()
        logger.exception("Unexpected error while executing delivery task")
        return ExecutionOutcome.FAILED


def drain_queue(email_client, session=None, max_tasks: Optional[int] = None) -> int:
    """Process tasks until the queue is empty or an iteration fails. Returns tasks completed."""
    completed = 0
    while max_tasks is None or completed < max_tasks:
        outcome = try_execute_task(email_client, session=session)
        if outcome is not ExecutionOutcome.TASK_COMPLETED:
            break
        completed += 1
    return completed


def run_delivery_worker(
    app,
    email_client=None,
    config: Optional[WorkerConfig] = None,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """
    Delivery loop. Drains back-to-back while tasks are available, sleeps after
    an empty poll or a failed iteration, and never exits on its own.
    """
    cfg = config or WorkerConfig.from_env()
    stop = stop_event or threading.Event()

    with app.app_context():
        client = email_client or app.extensions["email_client"]
        logger.info(
            "Starting delivery worker (empty_queue_sleep=%ss, error_sleep=%ss)",
            cfg.empty_queue_sleep,
            cfg.error_sleep,
        )
        try:
            while not stop.is_set():
                outcome = try_execute_task(client)
                if outcome is ExecutionOutcome.EMPTY_QUEUE:
                    stop.wait(cfg.empty_queue_sleep)
                elif outcome is ExecutionOutcome.FAILED:
                    stop.wait(cfg.error_sleep)
        finally:
            db.session.remove()
        logger.info("Delivery worker stopped")
