"""Outbound e-mail capability."""

from newsdesk.platform.email.client import EmailClient, EmailDeliveryError

__all__ = ["EmailClient", "EmailDeliveryError"]
