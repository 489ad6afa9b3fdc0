"""Subscription confirmation tokens."""

from __future__ import annotations

import secrets
import string

TOKEN_LENGTH = 25
_ALPHABET = string.ascii_letters + string.digits


class ConfirmationToken(str):
    """25 case-sensitive ASCII letters and digits."""

    @classmethod
    def generate(cls) -> "ConfirmationToken":
        return cls("".join(secrets.choice(_ALPHABET) for _ in range(TOKEN_LENGTH)))

    @classmethod
    def parse(cls, raw: str | None) -> "ConfirmationToken":
        value = raw or ""
        if len(value) != TOKEN_LENGTH or any(ch not in _ALPHABET for ch in value):
            raise ValueError(f"{value!r} is not a valid subscription token")
        return cls(value)
