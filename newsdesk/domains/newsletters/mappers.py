"""Mappers for newsletter responses."""

from __future__ import annotations

from newsdesk.domains.newsletters.models.issue_models import NewsletterIssue


def map_issue(issue: NewsletterIssue) -> dict:
    return {
        "id": str(issue.id),
        "title": issue.title,
        "text_content": issue.text_content,
        "html_content": issue.html_content,
        "published_at": issue.published_at.isoformat() if issue.published_at else None,
    }
