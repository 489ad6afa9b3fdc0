"""Operator CLI commands, registered on the Flask app.

Usage:
    flask --app newsdesk.wsgi create-operator --email ops@example.com
    flask --app newsdesk.wsgi add-subscriber --email reader@example.com --name Reader --confirmed
    flask --app newsdesk.wsgi confirm-subscriber --email reader@example.com
    flask --app newsdesk.wsgi drain-deliveries
    flask --app newsdesk.wsgi sweep-idempotency --ttl-hours 24
"""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from newsdesk.core.users.services import create_operator, issue_access_token
from newsdesk.domains.subscriptions.email import SubscriberEmail
from newsdesk.domains.subscriptions.services import add_subscriber, confirm_subscriber
from newsdesk.extensions import db


@click.command("create-operator")
@click.option("--email", required=True, help="Operator email")
@click.option("--full-name", default=None, help="Operator display name")
@with_appcontext
def create_operator_command(email: str, full_name: str | None) -> None:
    """Create an operator and print a bearer token for the publish API."""
    try:
        user = create_operator(email, full_name)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created operator {user.email} (id={user.id})")
    click.echo(issue_access_token(user))


@click.command("add-subscriber")
@click.option("--email", required=True, help="Subscriber email")
@click.option("--name", default="", help="Subscriber name")
@click.option("--confirmed", is_flag=True, default=False, help="Mark the subscription as confirmed")
@with_appcontext
def add_subscriber_command(email: str, name: str, confirmed: bool) -> None:
    try:
        parsed = SubscriberEmail.parse(email)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    try:
        subscription = add_subscriber(parsed, name, confirmed=confirmed)
    except IntegrityError as exc:
        db.session.rollback()
        raise click.ClickException("subscriber_already_exists") from exc
    click.echo(f"Added subscriber {subscription.email} ({subscription.status})")


@click.command("confirm-subscriber")
@click.option("--email", required=True, help="Subscriber email")
@with_appcontext
def confirm_subscriber_command(email: str) -> None:
    """Mark a pending subscriber as confirmed without the e-mailed link."""
    subscription = confirm_subscriber(email)
    if subscription is None:
        raise click.ClickException("subscriber_not_found")
    click.echo(f"Confirmed subscriber {subscription.email}")


@click.command("drain-deliveries")
@click.option("--max-tasks", type=int, default=None, help="Stop after this many tasks")
@with_appcontext
def drain_deliveries_command(max_tasks: int | None) -> None:
    """Process queued deliveries in the foreground until the queue is empty."""
    from newsdesk.platform.worker.delivery import drain_queue

    completed = drain_queue(current_app.extensions["email_client"], max_tasks=max_tasks)
    click.echo(f"Processed {completed} delivery tasks")


@click.command("sweep-idempotency")
@click.option("--ttl-hours", type=float, default=24.0, help="Delete records older than this")
@with_appcontext
def sweep_idempotency_command(ttl_hours: float) -> None:
    from datetime import timedelta

    from newsdesk.platform.worker.expiration import delete_expired

    removed = delete_expired(ttl=timedelta(hours=ttl_hours))
    click.echo(f"Removed {removed} expired idempotency records")


def register_commands(app) -> None:
    for command in (
        create_operator_command,
        add_subscriber_command,
        confirm_subscriber_command,
        drain_deliveries_command,
        sweep_idempotency_command,
    ):
        app.cli.add_command(command)
