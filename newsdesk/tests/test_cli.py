from __future__ import annotations

from datetime import datetime, timedelta

import pytest

pytestmark = pytest.mark.integration

from newsdesk.core.users.models import User
from newsdesk.domains.newsletters.services.issue_service import create_issue
from newsdesk.domains.subscriptions.models import STATUS_CONFIRMED, Subscription
from newsdesk.extensions import db
from newsdesk.platform.idempotency import IdempotencyRecord
from newsdesk.platform.outbox import count_pending, enqueue_delivery_tasks


def test_create_operator_prints_token(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-operator", "--email", "Ops@Example.com"])

    assert result.exit_code == 0, result.output
    assert "ops@example.com" in result.output
    token = result.output.strip().splitlines()[-1]
    assert token.count(".") == 2
    assert db.session.query(User).filter_by(email="ops@example.com").count() == 1


def test_create_operator_rejects_duplicates(app, operator):
    result = app.test_cli_runner().invoke(args=["create-operator", "--email", operator.email])

    assert result.exit_code != 0
    assert "email_already_exists" in result.output


def test_add_subscriber(app):
    runner = app.test_cli_runner()

    result = runner.invoke(
        args=["add-subscriber", "--email", "reader@example.com", "--name", "Reader", "--confirmed"]
    )

    assert result.exit_code == 0, result.output
    sub = db.session.query(Subscription).filter_by(email="reader@example.com").one()
    assert sub.status == STATUS_CONFIRMED


def test_add_subscriber_rejects_invalid_email(app):
    result = app.test_cli_runner().invoke(args=["add-subscriber", "--email", "nope"])

    assert result.exit_code != 0
    assert db.session.query(Subscription).count() == 0


def test_drain_deliveries_uses_configured_client(app, email_client):
    db.session.add(Subscription(email="reader@example.com", name="Reader", status=STATUS_CONFIRMED))
    issue = create_issue(db.session, title="T", text_content="t", html_content="<p>t</p>")
    enqueue_delivery_tasks(db.session, issue.id)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["drain-deliveries"])

    assert result.exit_code == 0, result.output
    assert "Processed 1 delivery tasks" in result.output
    assert email_client.recipients == ["reader@example.com"]
    assert count_pending() == 0


def test_sweep_idempotency(app, operator):
    db.session.add(
        IdempotencyRecord(
            user_id=operator.id,
            idempotency_key="old",
            created_at=datetime.utcnow() - timedelta(days=2),
        )
    )
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["sweep-idempotency"])

    assert result.exit_code == 0, result.output
    assert "Removed 1 expired idempotency records" in result.output
    assert db.session.query(IdempotencyRecord).count() == 0


def test_confirm_subscriber(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["add-subscriber", "--email", "reader@example.com", "--name", "Reader"])

    result = runner.invoke(args=["confirm-subscriber", "--email", "reader@example.com"])

    assert result.exit_code == 0, result.output
    sub = db.session.query(Subscription).filter_by(email="reader@example.com").one()
    assert sub.status == STATUS_CONFIRMED


def test_confirm_subscriber_unknown_email(app):
    result = app.test_cli_runner().invoke(args=["confirm-subscriber", "--email", "nobody@example.com"])

    assert result.exit_code != 0
    assert "subscriber_not_found" in result.output
