"""newsdesk application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from newsdesk.config import config_by_name
from newsdesk.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the newsdesk Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    instance_root.mkdir(parents=True, exist_ok=True)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
    if db_uri and db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////"):
        db_path = db_uri.replace("sqlite:///", "", 1)
        abs_path = project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    init_extensions(app)
    _register_blueprints(app)
    _register_error_handlers(app)
    _register_auth_handlers(app)

    from newsdesk.platform.email.client import EmailClient

    app.extensions["email_client"] = EmailClient.from_config(app.config)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from newsdesk.scripts.manage import register_commands

    register_commands(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from newsdesk.domains.newsletters.controllers.newsletter_api import newsletter_api_bp
    from newsdesk.domains.subscriptions.controllers.subscription_api import subscription_api_bp

    app.register_blueprint(newsletter_api_bp, url_prefix="/api/newsletters")
    app.register_blueprint(subscription_api_bp, url_prefix="/api/subscriptions")


def _register_error_handlers(app: Flask) -> None:
    """Basic JSON error responses."""
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500


def _register_auth_handlers(app: Flask) -> None:
    """JWT failure responses in the same shape as the rest of the API."""
    from newsdesk.extensions import jwt

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return {"ok": False, "error": "unauthorized", "details": reason}, 401

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return {"ok": False, "error": "unauthorized", "details": reason}, 401

    @jwt.expired_token_loader
    def _expired_token(_header, _payload):
        return {"ok": False, "error": "token_expired"}, 401
