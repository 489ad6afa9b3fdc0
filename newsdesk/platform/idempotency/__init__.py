"""Idempotency ledger for write commands."""

from newsdesk.platform.idempotency.models import IdempotencyRecord
from newsdesk.platform.idempotency.services import (
    AlreadyCompleted,
    IdempotencyError,
    IdempotencyKey,
    Reserved,
    ReservationInProgressError,
    ReservationNotHeldError,
    SavedResponse,
    complete,
    get_saved_response,
    reserve,
)

__all__ = [
    "IdempotencyRecord",
    "IdempotencyKey",
    "SavedResponse",
    "Reserved",
    "AlreadyCompleted",
    "IdempotencyError",
    "ReservationInProgressError",
    "ReservationNotHeldError",
    "reserve",
    "complete",
    "get_saved_response",
]
