from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from flask import Response

pytestmark = pytest.mark.integration

from newsdesk.extensions import db
from newsdesk.platform.idempotency import (
    AlreadyCompleted,
    IdempotencyKey,
    IdempotencyRecord,
    Reserved,
    ReservationInProgressError,
    ReservationNotHeldError,
    SavedResponse,
    complete,
    get_saved_response,
    reserve,
)


def _saved(body: bytes = b'{"ok": true}') -> SavedResponse:
    return SavedResponse(
        status_code=303,
        headers=(
            ("Content-Type", b"application/json"),
            ("Location", b"/api/newsletters/issues/abc"),
            ("X-Trace", b"first"),
            ("X-Trace", b"second"),
            ("X-Latin", "café".encode("latin-1")),
        ),
        body=body,
    )


@pytest.mark.unit
@pytest.mark.parametrize("raw", [None, "", "   "])
def test_idempotency_key_rejects_empty(raw):
    with pytest.raises(ValueError):
        IdempotencyKey.parse(raw)


@pytest.mark.unit
def test_idempotency_key_length_limit():
    assert IdempotencyKey.parse("k" * 50) == "k" * 50
    with pytest.raises(ValueError):
        IdempotencyKey.parse("k" * 51)


@pytest.mark.unit
def test_idempotency_key_is_stripped():
    assert IdempotencyKey.parse("  abc-123 \n") == "abc-123"


@pytest.mark.unit
def test_saved_response_rebuilds_exact_headers_and_body():
    saved = _saved()
    rebuilt = saved.to_response()

    assert rebuilt.status_code == 303
    assert rebuilt.get_data() == b'{"ok": true}'
    assert [(k, v.encode("latin-1")) for k, v in rebuilt.headers.items()] == list(saved.headers)


@pytest.mark.unit
def test_saved_response_capture_keeps_header_order_and_duplicates():
    resp = Response(b"hello", status=201, mimetype="text/plain")
    resp.headers.add("X-Dup", "1")
    resp.headers.add("X-Dup", "2")

    saved = SavedResponse.capture(resp)

    assert saved.status_code == 201
    assert saved.body == b"hello"
    assert [name for name, _ in saved.headers if name == "X-Dup"] == ["X-Dup", "X-Dup"]
    assert [value for name, value in saved.headers if name == "X-Dup"] == [b"1", b"2"]


def test_first_reservation_is_reserved(app, operator):
    with app.app_context():
        outcome = reserve(db.session, operator.id, "key-1")
        assert outcome == Reserved(user_id=operator.id, key="key-1")
        db.session.rollback()


def test_completed_key_replays_saved_response(app, operator):
    with app.app_context():
        reserve(db.session, operator.id, "key-1")
        complete(db.session, operator.id, "key-1", _saved())

        outcome = reserve(db.session, operator.id, "key-1")
        db.session.rollback()

        assert isinstance(outcome, AlreadyCompleted)
        assert outcome.response == _saved()
        assert db.session.query(IdempotencyRecord).count() == 1


def test_keys_are_scoped_per_user(app, operator):
    from newsdesk.core.users.services import create_operator

    with app.app_context():
        other = create_operator("other@example.com")
        reserve(db.session, operator.id, "shared")
        complete(db.session, operator.id, "shared", _saved())

        outcome = reserve(db.session, other.id, "shared")
        db.session.rollback()

        assert isinstance(outcome, Reserved)


def test_recent_incomplete_reservation_is_in_progress(app, operator):
    with app.app_context():
        reserve(db.session, operator.id, "key-1")
        # Simulate a holder that committed without storing a response.
        db.session.commit()

        with pytest.raises(ReservationInProgressError) as excinfo:
            reserve(db.session, operator.id, "key-1")
        db.session.rollback()

        assert excinfo.value.key == "key-1"
        assert get_saved_response(db.session, operator.id, "key-1") is None


def test_abandoned_reservation_is_taken_over(app, operator):
    with app.app_context():
        stale_at = datetime.utcnow() - timedelta(hours=1)
        db.session.add(
            IdempotencyRecord(user_id=operator.id, idempotency_key="key-1", created_at=stale_at)
        )
        db.session.commit()

        outcome = reserve(
            db.session, operator.id, "key-1", reservation_timeout=timedelta(minutes=5)
        )
        assert isinstance(outcome, Reserved)
        complete(db.session, operator.id, "key-1", _saved())

        records = db.session.query(IdempotencyRecord).all()
        assert len(records) == 1
        assert records[0].created_at > stale_at
        assert get_saved_response(db.session, operator.id, "key-1") == _saved()


def test_rollback_releases_reservation(app, operator):
    with app.app_context():
        reserve(db.session, operator.id, "key-1")
        db.session.rollback()

        assert db.session.query(IdempotencyRecord).count() == 0
        assert isinstance(reserve(db.session, operator.id, "key-1"), Reserved)
        db.session.rollback()


def test_complete_without_reservation_fails(app, operator):
    with app.app_context():
        with pytest.raises(ReservationNotHeldError):
            complete(db.session, operator.id, "never-reserved", _saved())
        db.session.rollback()


def test_complete_twice_fails(app, operator):
    with app.app_context():
        reserve(db.session, operator.id, "key-1")
        complete(db.session, operator.id, "key-1", _saved())

        with pytest.raises(ReservationNotHeldError):
            complete(db.session, operator.id, "key-1", _saved(b"other"))
        db.session.rollback()

        assert get_saved_response(db.session, operator.id, "key-1").body == b'{"ok": true}'
