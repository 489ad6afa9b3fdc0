"""Subscription schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class SubscribeRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    email: EmailStr
