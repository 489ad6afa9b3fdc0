"""Idempotency ledger: reserve a (user, key) slot, complete it, replay it.

``reserve`` inserts the ledger row with ``ON CONFLICT DO NOTHING`` inside the
caller's open transaction. On PostgreSQL a second insert for the same key
blocks on the first row's lock until the holder commits or rolls back, so the
row acts as a cross-process mutex for the duration of the command. The holder
must call ``complete``, which stores the response and commits.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple, Union

from flask import Response, current_app
from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from newsdesk.platform.idempotency.models import IdempotencyRecord

logger = logging.getLogger(__name__)

KEY_MAX_LENGTH = 50
DEFAULT_RESERVATION_TIMEOUT = timedelta(minutes=5)


class IdempotencyError(Exception):
    """Base exception for ledger operations."""


class ReservationInProgressError(IdempotencyError):
    """Another request holds a recent, still incomplete reservation for the key."""

    def __init__(self, user_id: int, key: str) -> None:
        super().__init__(f"request with idempotency key {key!r} is still in progress")
        self.user_id = user_id
        self.key = key


class ReservationNotHeldError(IdempotencyError):
    """``complete`` was called for a key this transaction never reserved."""


class IdempotencyKey(str):
    """Client-supplied opaque token; only its length is checked."""

    @classmethod
    def parse(cls, raw: Optional[str]) -> "IdempotencyKey":
        value = (raw or "").strip()
        if not value:
            raise ValueError("The idempotency key cannot be empty")
        if len(value) > KEY_MAX_LENGTH:
            raise ValueError(f"The idempotency key must be at most {KEY_MAX_LENGTH} characters long")
        return cls(value)


@dataclass(frozen=True)
class SavedResponse:
    """HTTP response as stored in the ledger: status, raw ordered headers, raw body."""

    status_code: int
    headers: Tuple[Tuple[str, bytes], ...]
    body: bytes

    @classmethod
    def capture(cls, response: Response) -> "SavedResponse":
        # WSGI header values are latin-1 strings; encoding them back is lossless.
        headers = tuple((name, value.encode("latin-1")) for name, value in response.headers.items())
        return cls(status_code=response.status_code, headers=headers, body=response.get_data())

    @classmethod
    def from_record(cls, record: IdempotencyRecord) -> "SavedResponse":
        headers = tuple(
            (name, base64.b64decode(encoded)) for name, encoded in (record.response_headers or [])
        )
        return cls(
            status_code=record.response_status_code,
            headers=headers,
            body=bytes(record.response_body or b""),
        )

    def headers_for_storage(self) -> list:
        return [[name, base64.b64encode(value).decode("ascii")] for name, value in self.headers]

    def to_response(self) -> Response:
        """Rebuild the exact response; the stored header list replaces Flask's defaults."""
        response = Response(status=self.status_code)
        response.set_data(self.body)
        response.headers.clear()
        for name, value in self.headers:
            response.headers.add(name, value.decode("latin-1"))
        return response


@dataclass(frozen=True)
class Reserved:
    user_id: int
    key: str


@dataclass(frozen=True)
class AlreadyCompleted:
    response: SavedResponse


ReservationOutcome = Union[Reserved, AlreadyCompleted]


def _reservation_timeout() -> timedelta:
    seconds = current_app.config.get("IDEMPOTENCY_RESERVATION_TIMEOUT_SECONDS")
    if seconds is None:
        return DEFAULT_RESERVATION_TIMEOUT
    return timedelta(seconds=int(seconds))


def _insert_reservation(session, user_id: int, key: str, now: datetime) -> bool:
    """Insert the ledger row unless one exists. True when this call created it."""
    values = {"user_id": user_id, "idempotency_key": key, "created_at": now}
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(IdempotencyRecord).values(**values).on_conflict_do_nothing(
            index_elements=["user_id", "idempotency_key"]
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(IdempotencyRecord).values(**values).on_conflict_do_nothing(
            index_elements=["user_id", "idempotency_key"]
        )
    else:
        try:
            with session.begin_nested():
                session.execute(insert(IdempotencyRecord).values(**values))
        except IntegrityError:
            return False
        return True
    return session.execute(stmt).rowcount == 1


def _load_record(session, user_id: int, key: str) -> Optional[IdempotencyRecord]:
    stmt = (
        select(IdempotencyRecord)
        .where(
            IdempotencyRecord.user_id == user_id,
            IdempotencyRecord.idempotency_key == key,
        )
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one_or_none()


def reserve(
    session,
    user_id: int,
    key: str,
    reservation_timeout: Optional[timedelta] = None,
) -> ReservationOutcome:
    """
    Reserve ``(user_id, key)`` inside the session's current transaction.

    Returns ``Reserved`` when the caller now owns the key and must execute the
    command then call ``complete``; ``AlreadyCompleted`` with the cached
    response otherwise. An incomplete reservation younger than the timeout
    raises ``ReservationInProgressError``; an older one is taken over.
    """
    timeout = reservation_timeout or _reservation_timeout()

    for _ in range(2):
        now = datetime.utcnow()
        if _insert_reservation(session, user_id, key, now):
            return Reserved(user_id=user_id, key=key)

        record = _load_record(session, user_id, key)
        if record is None:
            # Swept between the conflicting insert and the read.
            continue
        if record.response_status_code is not None:
            return AlreadyCompleted(SavedResponse.from_record(record))
        if now - record.created_at < timeout:
            raise ReservationInProgressError(user_id, key)

        logger.warning(
            "Taking over abandoned idempotency reservation (user_id=%s, key=%s, created_at=%s)",
            user_id,
            key,
            record.created_at.isoformat(),
        )
        session.execute(
            delete(IdempotencyRecord).where(
                IdempotencyRecord.user_id == user_id,
                IdempotencyRecord.idempotency_key == key,
                IdempotencyRecord.response_status_code.is_(None),
            )
        )

    raise ReservationInProgressError(user_id, key)


def complete(session, user_id: int, key: str, response: SavedResponse) -> SavedResponse:
    """Store the response on the reserved row and commit the whole transaction."""
    result = session.execute(
        update(IdempotencyRecord)
        .where(
            IdempotencyRecord.user_id == user_id,
            IdempotencyRecord.idempotency_key == key,
            IdempotencyRecord.response_status_code.is_(None),
        )
        .values(
            response_status_code=response.status_code,
            response_headers=response.headers_for_storage(),
            response_body=response.body,
        )
    )
    if result.rowcount != 1:
        raise ReservationNotHeldError(f"no open reservation for key {key!r}")
    session.commit()
    return response


def get_saved_response(session, user_id: int, key: str) -> Optional[SavedResponse]:
    record = _load_record(session, user_id, key)
    if record is None or record.response_status_code is None:
        return None
    return SavedResponse.from_record(record)
