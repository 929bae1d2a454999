"""Configuration module for the billing portal."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from billing_portal.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USE_SSL: bool
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    SMTP_FROM_NAME: str
    SMTP_SANDBOX_MODE: bool
    PORTAL_BASE_URL: str
    CRON_SECRET: str | None
    JWT_SECRET: str
    INVOICE_DUE_DAYS: int
    TEST_EMAIL_COOLDOWN_SECONDS: int
    DEFAULT_CURRENCY: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    BILLING_CRON_HOUR: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    smtp_port = int(os.getenv("SMTP_PORT", "587"))

    config = Config(
        APP_NAME="Billing Portal",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./billing_portal.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        SMTP_SERVER=os.getenv("SMTP_SERVER"),
        SMTP_PORT=smtp_port,
        SMTP_USE_SSL=_as_bool(os.getenv("SMTP_USE_SSL"), default=(smtp_port == 465)),
        SMTP_USERNAME=os.getenv("SMTP_USERNAME"),
        SMTP_PASSWORD=os.getenv("SMTP_PASSWORD"),
        SMTP_FROM_NAME=os.getenv("SMTP_FROM_NAME", "Billing Portal"),
        SMTP_SANDBOX_MODE=_as_bool(os.getenv("SMTP_SANDBOX_MODE"), default=(resolved_env != "production")),
        PORTAL_BASE_URL=os.getenv("PORTAL_BASE_URL", "http://localhost:8000").rstrip("/"),
        CRON_SECRET=os.getenv("CRON_SECRET") or None,
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        INVOICE_DUE_DAYS=int(os.getenv("INVOICE_DUE_DAYS", "7")),
        TEST_EMAIL_COOLDOWN_SECONDS=int(os.getenv("TEST_EMAIL_COOLDOWN_SECONDS", "300")),
        DEFAULT_CURRENCY=os.getenv("DEFAULT_CURRENCY", "USD").strip().upper(),
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0")),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0")),
        BILLING_CRON_HOUR=int(os.getenv("BILLING_CRON_HOUR", "6")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.SMTP_PORT < 1:
        raise ConfigurationError("SMTP_PORT must be >= 1.")
    if config.INVOICE_DUE_DAYS < 0:
        raise ConfigurationError("INVOICE_DUE_DAYS must be >= 0.")
    if config.TEST_EMAIL_COOLDOWN_SECONDS < 0:
        raise ConfigurationError("TEST_EMAIL_COOLDOWN_SECONDS must be >= 0.")
    if len(config.DEFAULT_CURRENCY) != 3:
        raise ConfigurationError("DEFAULT_CURRENCY must be a three-letter currency code.")
    if not 0 <= config.BILLING_CRON_HOUR <= 23:
        raise ConfigurationError("BILLING_CRON_HOUR must be between 0 and 23.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and not config.CRON_SECRET:
        raise ConfigurationError("CRON_SECRET must be set in production.")
    if config.is_production and "change_me" in config.JWT_SECRET.lower():
        raise ConfigurationError("Production JWT_SECRET uses a placeholder value.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
