from __future__ import annotations

import pytest
import requests

pytestmark = pytest.mark.unit

from newsdesk.platform.email import EmailClient, EmailDeliveryError


class _FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


def _client() -> EmailClient:
    return EmailClient(
        base_url="https://email.example.com/",
        sender="newsletter@example.com",
        auth_token="server-token",
        timeout_ms=250,
    )


def test_send_email_posts_postmark_payload(monkeypatch):
    client = _client()
    calls = []

    def _post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return _FakeResponse(200)

    monkeypatch.setattr(client.http, "post", _post)

    client.send_email("reader@example.com", "Subject", "<p>Hi</p>", "Hi")

    assert calls == [
        {
            "url": "https://email.example.com/email",
            "json": {
                "From": "newsletter@example.com",
                "To": "reader@example.com",
                "Subject": "Subject",
                "HtmlBody": "<p>Hi</p>",
                "TextBody": "Hi",
            },
            "headers": {"X-Postmark-Server-Token": "server-token"},
            "timeout": 0.25,
        }
    ]


def test_send_email_raises_on_error_status(monkeypatch):
    client = _client()
    monkeypatch.setattr(client.http, "post", lambda *a, **kw: _FakeResponse(500))

    with pytest.raises(EmailDeliveryError):
        client.send_email("reader@example.com", "Subject", "<p>Hi</p>", "Hi")


@pytest.mark.parametrize("status", [102, 204, 302, 304])
def test_send_email_accepts_only_2xx(monkeypatch, status):
    client = _client()
    monkeypatch.setattr(client.http, "post", lambda *a, **kw: _FakeResponse(status))

    if 200 <= status < 300:
        client.send_email("reader@example.com", "Subject", "<p>Hi</p>", "Hi")
    else:
        with pytest.raises(EmailDeliveryError, match=str(status)):
            client.send_email("reader@example.com", "Subject", "<p>Hi</p>", "Hi")


def test_send_email_raises_on_timeout(monkeypatch):
    client = _client()

    def _post(*args, **kwargs):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(client.http, "post", _post)

    with pytest.raises(EmailDeliveryError, match="timed out"):
        client.send_email("reader@example.com", "Subject", "<p>Hi</p>", "Hi")


def test_from_config_reads_email_settings():
    client = EmailClient.from_config(
        {
            "EMAIL_BASE_URL": "http://localhost:8025",
            "EMAIL_SENDER": "ops@example.com",
            "EMAIL_AUTH_TOKEN": "t",
            "EMAIL_TIMEOUT_MS": 1500,
        }
    )

    assert client.base_url == "http://localhost:8025"
    assert client.sender == "ops@example.com"
    assert client.timeout == 1.5
