"""Subscriber e-mail address parsing."""

from __future__ import annotations

from pydantic import EmailStr, TypeAdapter, ValidationError

_email_adapter = TypeAdapter(EmailStr)


class SubscriberEmail(str):
    """An e-mail address that passed syntax validation."""

    @classmethod
    def parse(cls, raw: str | None) -> "SubscriberEmail":
        if not raw or not raw.strip():
            raise ValueError("empty subscriber email")
        try:
            _email_adapter.validate_python(raw.strip())
        except ValidationError as exc:
            raise ValueError(f"{raw} is not a valid subscriber email.") from exc
        return cls(raw.strip())
