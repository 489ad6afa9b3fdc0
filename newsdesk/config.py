"""Application configuration for newsdesk."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Dict, Type

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _engine_options_from_uri(uri: str) -> dict:
    url = make_url(uri)
    # Always keep pool_pre_ping, vary connect_args by dialect.
    if url.get_backend_name() == "sqlite":
        # Writers queue on the database lock instead of failing immediately.
        return {"pool_pre_ping": True, "connect_args": {"timeout": 30}}
    if url.get_backend_name() in {"postgresql", "postgres"}:
        timeout = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", "10"))
        return {
            "pool_pre_ping": True,
            "pool_size": int(os.environ.get("DB_POOL_SIZE", "10")),
            "connect_args": {"connect_timeout": timeout},
        }
    return {"pool_pre_ping": True}


class BaseConfig:
    """Base configuration loaded for all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///instance/newsdesk.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "30")))

    RATELIMIT_DEFAULT = "200/hour"
    RATELIMIT_PUBLISH = os.environ.get("RATELIMIT_PUBLISH", "30/minute")
    RATELIMIT_SUBSCRIBE = os.environ.get("RATELIMIT_SUBSCRIBE", "10/minute")
    RATELIMIT_STORAGE_URI = os.environ.get("REDIS_URL", "memory://")
    RATELIMIT_ENABLED = _env_flag("RATELIMIT_ENABLED", "true")

    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(2 * 1024 * 1024)))

    # Outbound email API (Postmark-compatible)
    EMAIL_BASE_URL = os.environ.get("EMAIL_BASE_URL", "http://localhost:8025")
    EMAIL_SENDER = os.environ.get("EMAIL_SENDER", "newsletter@newsdesk.io")
    EMAIL_AUTH_TOKEN = os.environ.get("EMAIL_AUTH_TOKEN", "")
    EMAIL_TIMEOUT_MS = int(os.environ.get("EMAIL_TIMEOUT_MS", "10000"))

    # Public URL used in confirmation links; falls back to the request host.
    APP_BASE_URL = os.environ.get("APP_BASE_URL")

    # An incomplete reservation older than this is considered abandoned.
    IDEMPOTENCY_RESERVATION_TIMEOUT_SECONDS = int(
        os.environ.get("IDEMPOTENCY_RESERVATION_TIMEOUT_SECONDS", "300")
    )


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class TestingConfig(BaseConfig):
    TESTING = True
    # File-backed SQLite so Alembic migrations and app share the same DB.
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///instance/test.db")
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)
    RATELIMIT_ENABLED = False
    EMAIL_BASE_URL = "http://email.invalid"
    EMAIL_TIMEOUT_MS = 200


class ProductionConfig(BaseConfig):
    ENV = "production"


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
