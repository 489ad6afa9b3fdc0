"""Reusable decorators for controllers."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import g, jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from newsdesk.core.users.services import get_active_operator

F = TypeVar("F", bound=Callable)


def operator_required(fn: F) -> F:
    """Require a bearer token for an active operator; exposes ``g.operator_id``."""

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError):
            return jsonify({"ok": False, "error": "unauthorized"}), 401
        try:
            user_id = int(get_jwt_identity())
        except (TypeError, ValueError):
            return jsonify({"ok": False, "error": "unauthorized"}), 401
        if get_active_operator(user_id) is None:
            return jsonify({"ok": False, "error": "forbidden"}), 403
        g.operator_id = user_id
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
