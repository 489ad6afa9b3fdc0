"""Newsletter issue store."""

from __future__ import annotations

import uuid
from datetime import datetime

from newsdesk.domains.newsletters.models.issue_models import NewsletterIssue
from newsdesk.extensions import db


def create_issue(session, *, title: str, text_content: str, html_content: str) -> NewsletterIssue:
    """Add an issue to the session's open transaction; the caller commits."""
    issue = NewsletterIssue(
        id=uuid.uuid4(),
        title=title.strip(),
        text_content=text_content,
        html_content=html_content,
        published_at=datetime.utcnow(),
    )
    session.add(issue)
    session.flush()
    return issue


def get_issue(issue_id: uuid.UUID, session=None) -> NewsletterIssue | None:
    session = session or db.session
    return session.get(NewsletterIssue, issue_id)
