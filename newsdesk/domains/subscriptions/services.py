"""Subscriber store: sign-up, confirmation and the confirmed view consumed by publishing."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select

from newsdesk.domains.subscriptions.email import SubscriberEmail
from newsdesk.domains.subscriptions.models import (
    STATUS_CONFIRMED,
    STATUS_PENDING_CONFIRMATION,
    Subscription,
    SubscriptionToken,
)
from newsdesk.domains.subscriptions.tokens import ConfirmationToken
from newsdesk.extensions import db

logger = logging.getLogger(__name__)

CONFIRM_PATH = "/api/subscriptions/confirm"


def add_subscriber(email: str, name: str, *, confirmed: bool = False) -> Subscription:
    subscription = Subscription(
        email=email.strip(),
        name=name.strip(),
        status=STATUS_CONFIRMED if confirmed else STATUS_PENDING_CONFIRMATION,
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription


def confirmation_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{CONFIRM_PATH}?token={token}"


def _send_confirmation_email(email_client, subscription: Subscription, link: str) -> None:
    html_body = (
        "Welcome to our newsletter!<br />"
        f'Click <a href="{link}">here</a> to confirm your subscription.'
    )
    text_body = f"Welcome to our newsletter!\nVisit {link} to confirm your subscription."
    email_client.send_email(subscription.email, "Welcome!", html_body, text_body)


def subscribe(email: str, name: str, *, email_client, base_url: str) -> Subscription:
    """
    Register a pending subscriber and mail a confirmation link.

    Each call for a pending address issues a fresh token and a new e-mail. The
    token is only committed once the e-mail API accepted the message, so a
    failed send leaves nothing behind. Confirmed addresses are returned as-is.
    """
    recipient = SubscriberEmail.parse(email)
    try:
        subscription = Subscription.query.filter_by(email=str(recipient)).first()
        if subscription is not None and subscription.status == STATUS_CONFIRMED:
            db.session.rollback()
            return subscription
        if subscription is None:
            subscription = Subscription(
                email=str(recipient), name=name.strip(), status=STATUS_PENDING_CONFIRMATION
            )
            db.session.add(subscription)
            db.session.flush()

        token = ConfirmationToken.generate()
        db.session.add(SubscriptionToken(token=token, subscriber_id=subscription.id))
        db.session.flush()
        _send_confirmation_email(email_client, subscription, confirmation_link(base_url, token))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Sent confirmation e-mail to pending subscriber %s", subscription.email)
    return subscription


def confirm_subscription_token(raw_token: str | None) -> Subscription | None:
    """Confirm the subscriber owning ``raw_token``. None when the token is unknown.

    Raises ValueError for a malformed token.
    """
    token = ConfirmationToken.parse(raw_token)
    record = db.session.get(SubscriptionToken, str(token))
    if record is None:
        return None
    subscription = db.session.get(Subscription, record.subscriber_id)
    subscription.status = STATUS_CONFIRMED
    db.session.commit()
    logger.info("Confirmed subscriber %s", subscription.email)
    return subscription


def confirm_subscriber(email: str) -> Subscription | None:
    subscription = Subscription.query.filter_by(email=email.strip()).first()
    if not subscription:
        return None
    subscription.status = STATUS_CONFIRMED
    db.session.commit()
    return subscription


def confirmed_emails_query():
    """Selectable of every currently confirmed subscriber email."""
    return select(Subscription.email).where(Subscription.status == STATUS_CONFIRMED)


def confirmed_subscriber_emails(session=None) -> List[str]:
    session = session or db.session
    return list(session.execute(confirmed_emails_query()).scalars())
