import sys
import threading
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config as AlembicConfig

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from newsdesk import create_app
from newsdesk.core.users.services import create_operator, issue_access_token
from newsdesk.extensions import db
from newsdesk.platform.email.client import EmailDeliveryError

# Child tables first so foreign keys never block the cleanup.
_TABLES_IN_DELETE_ORDER = (
    "issue_delivery_queue",
    "idempotency",
    "newsletter_issue",
    "subscription_token",
    "subscription",
    "user",
)


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")
    config.addinivalue_line(
        "markers", "concurrency: Concurrent publish and multi-worker delivery tests"
    )


def _alembic_config() -> AlembicConfig:
    cfg = AlembicConfig(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "newsdesk" / "migrations"))
    cfg.set_main_option("newsdesk_env", "testing")
    return cfg


@pytest.fixture(scope="session", autouse=True)
def migrated_db():
    """Apply migrations once per session to mirror production schema."""
    cfg = _alembic_config()
    command.upgrade(cfg, "head")
    yield
    command.downgrade(cfg, "base")


@pytest.fixture()
def app(migrated_db):
    """
    Create a per-test app against the migrated database.

    Commits are real (publish and the workers commit on their own), so every
    table is emptied after the test instead of rolling back a wrapping
    transaction.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    try:
        yield app
    finally:
        db.session.remove()
        with db.engine.begin() as conn:
            for table in _TABLES_IN_DELETE_ORDER:
                conn.execute(sa.text(f'DELETE FROM "{table}"'))
        db.engine.dispose()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def operator(app):
    return create_operator("operator@example.com", "Test Operator")


@pytest.fixture()
def auth_headers(app, operator):
    return {"Authorization": f"Bearer {issue_access_token(operator)}"}


class FakeEmailClient:
    """Records every send; addresses listed in ``failing`` raise EmailDeliveryError."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent: list[tuple[str, str, str, str]] = []
        self._lock = threading.Lock()

    def send_email(self, recipient, subject, html_body, text_body):
        with self._lock:
            self.sent.append((str(recipient), subject, html_body, text_body))
        if str(recipient) in self.failing:
            raise EmailDeliveryError(f"simulated failure for {recipient}")

    @property
    def recipients(self) -> list[str]:
        return [sent[0] for sent in self.sent]


@pytest.fixture()
def email_client(app):
    fake = FakeEmailClient()
    app.extensions["email_client"] = fake
    return fake
