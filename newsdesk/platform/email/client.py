"""Outbound e-mail via a Postmark-compatible HTTP API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the e-mail API could not accept a message."""


class EmailClient:
    """Thin wrapper around ``POST {base_url}/email`` with a bounded timeout."""

    def __init__(
        self,
        base_url: str,
        sender: str,
        auth_token: str,
        timeout_ms: int = 10000,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self.auth_token = auth_token
        self.timeout = timeout_ms / 1000
        self.http = session or requests.Session()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EmailClient":
        return cls(
            base_url=config["EMAIL_BASE_URL"],
            sender=config["EMAIL_SENDER"],
            auth_token=config.get("EMAIL_AUTH_TOKEN", ""),
            timeout_ms=int(config.get("EMAIL_TIMEOUT_MS", 10000)),
        )

    def send_email(self, recipient: str, subject: str, html_body: str, text_body: str) -> None:
        """
        Send one message.

        Raises:
            EmailDeliveryError: on transport failure, timeout or a non-2xx status.
        """
        payload = {
            "From": self.sender,
            "To": str(recipient),
            "Subject": subject,
            "HtmlBody": html_body,
            "TextBody": text_body,
        }
        try:
            resp = self.http.post(
                f"{self.base_url}/email",
                json=payload,
                headers={"X-Postmark-Server-Token": self.auth_token},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise EmailDeliveryError(f"Failed to send email to {recipient}: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise EmailDeliveryError(
                f"Failed to send email to {recipient}: unexpected status {resp.status_code}"
            )
        logger.debug("Email API accepted message for %s (status=%s)", recipient, resp.status_code)
