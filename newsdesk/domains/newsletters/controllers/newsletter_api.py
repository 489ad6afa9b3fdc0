"""Newsletter API controllers."""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request, url_for
from pydantic import ValidationError

from newsdesk.core.utils.decorators import operator_required
from newsdesk.core.utils.validation import jsonable_errors
from newsdesk.domains.newsletters import services
from newsdesk.domains.newsletters.mappers import map_issue
from newsdesk.domains.newsletters.models.issue_models import NewsletterIssue
from newsdesk.domains.newsletters.schemas.newsletter_schemas import PublishIssueRequest
from newsdesk.extensions import limiter
from newsdesk.platform.idempotency import IdempotencyKey, ReservationInProgressError, SavedResponse
from newsdesk.platform.outbox import count_pending

newsletter_api_bp = Blueprint("newsletter_api", __name__)


def _render_published(issue: NewsletterIssue, enqueued: int) -> SavedResponse:
    resp = jsonify(
        {
            "ok": True,
            "message": "The newsletter issue has been accepted for delivery.",
            "issue": map_issue(issue),
            "deliveries_enqueued": enqueued,
        }
    )
    resp.status_code = 303
    resp.headers["Location"] = url_for("newsletter_api.get_issue", issue_id=issue.id)
    return SavedResponse.capture(resp)


@newsletter_api_bp.post("/issues")
@limiter.limit(lambda: current_app.config.get("RATELIMIT_PUBLISH", "30/minute"))
@operator_required
def publish_issue():
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return (
            jsonify({"ok": False, "error": "validation_error", "details": "expected a JSON object"}),
            400,
        )
    raw_key = request.headers.get("Idempotency-Key") or payload.get("idempotency_key")
    try:
        key = IdempotencyKey.parse(raw_key if isinstance(raw_key, str) else None)
    except ValueError as exc:
        return jsonify({"ok": False, "error": "invalid_idempotency_key", "details": str(exc)}), 400
    try:
        data = PublishIssueRequest.model_validate(payload)
    except ValidationError as exc:
        return (
            jsonify({"ok": False, "error": "validation_error", "details": jsonable_errors(exc)}),
            400,
        )

    try:
        saved = services.publish_issue(
            g.operator_id,
            key,
            title=data.title,
            text_content=data.text_content,
            html_content=data.html_content,
            render_response=_render_published,
        )
    except ReservationInProgressError:
        return jsonify({"ok": False, "error": "request_in_progress"}), 409
    return saved.to_response()


@newsletter_api_bp.get("/issues/<uuid:issue_id>")
@operator_required
def get_issue(issue_id):
    issue = services.get_issue(issue_id)
    if not issue:
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify(
        {
            "ok": True,
            "issue": map_issue(issue),
            "pending_deliveries": count_pending(issue.id),
        }
    )
