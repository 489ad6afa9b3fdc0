"""Public subscription endpoints: sign up and confirm."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from newsdesk.core.utils.validation import jsonable_errors
from newsdesk.domains.subscriptions import services
from newsdesk.domains.subscriptions.schemas.subscription_schemas import SubscribeRequest
from newsdesk.extensions import limiter
from newsdesk.platform.email.client import EmailDeliveryError

subscription_api_bp = Blueprint("subscription_api", __name__)


@subscription_api_bp.post("")
@limiter.limit(lambda: current_app.config.get("RATELIMIT_SUBSCRIBE", "10/minute"))
def subscribe():
    # HTML sign-up forms post urlencoded data; API clients post JSON.
    payload = request.get_json(silent=True) if request.is_json else request.form.to_dict()
    if not isinstance(payload, dict):
        return jsonify({"ok": False, "error": "validation_error", "details": "expected an object"}), 400
    if isinstance(payload.get("name"), str):
        payload["name"] = payload["name"].strip()
    try:
        data = SubscribeRequest.model_validate(payload)
    except ValidationError as exc:
        return (
            jsonify({"ok": False, "error": "validation_error", "details": jsonable_errors(exc)}),
            400,
        )

    base_url = current_app.config.get("APP_BASE_URL") or request.host_url
    try:
        subscription = services.subscribe(
            data.email,
            data.name,
            email_client=current_app.extensions["email_client"],
            base_url=base_url,
        )
    except EmailDeliveryError:
        current_app.logger.exception("Failed to send confirmation e-mail to %s", data.email)
        return jsonify({"ok": False, "error": "confirmation_email_failed"}), 500
    return jsonify({"ok": True, "status": subscription.status}), 200


@subscription_api_bp.get("/confirm")
def confirm():
    raw_token = request.args.get("token")
    if not raw_token:
        return jsonify({"ok": False, "error": "missing_token"}), 400
    try:
        subscription = services.confirm_subscription_token(raw_token)
    except ValueError:
        return jsonify({"ok": False, "error": "invalid_token"}), 400
    if subscription is None:
        return jsonify({"ok": False, "error": "unknown_token"}), 401
    return jsonify({"ok": True, "status": subscription.status}), 200
