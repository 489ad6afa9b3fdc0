from newsdesk.domains.newsletters.services.issue_service import create_issue, get_issue
from newsdesk.domains.newsletters.services.publish_service import publish_issue

__all__ = [
    "create_issue",
    "get_issue",
    "publish_issue",
]
