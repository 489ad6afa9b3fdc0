"""Newsletter schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PublishIssueRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    text_content: str = Field(min_length=1)
    html_content: str = Field(min_length=1)
    idempotency_key: Optional[str] = None
