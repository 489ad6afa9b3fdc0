"""Operator lookup and provisioning."""

from __future__ import annotations

from flask_jwt_extended import create_access_token

from newsdesk.core.users.models import User
from newsdesk.extensions import db


def create_operator(email: str, full_name: str | None = None) -> User:
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ValueError("email_already_exists")
    user = User(email=email, full_name=(full_name or "").strip() or None, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def get_active_operator(user_id: int) -> User | None:
    return User.query.filter_by(id=user_id, is_active=True).first()


def issue_access_token(user: User) -> str:
    """Access token whose identity is the operator id."""
    return create_access_token(identity=str(user.id))
