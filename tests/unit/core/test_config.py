from __future__ import annotations

import pytest

from billing_portal.core.config import _build_config, get_config
from billing_portal.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_development_defaults(monkeypatch):
    for key in ("DATABASE_URL", "SMTP_SANDBOX_MODE", "INVOICE_DUE_DAYS", "TEST_EMAIL_COOLDOWN_SECONDS", "CRON_SECRET"):
        monkeypatch.delenv(key, raising=False)

    config = _build_config("development")

    assert config.DATABASE_URL.startswith("sqlite:///")
    assert config.SMTP_SANDBOX_MODE is True
    assert config.INVOICE_DUE_DAYS == 7
    assert config.TEST_EMAIL_COOLDOWN_SECONDS == 300
    assert config.CRON_SECRET is None


def test_portal_base_url_is_normalised(monkeypatch):
    monkeypatch.setenv("PORTAL_BASE_URL", "https://portal.example.com/")
    assert _build_config("development").PORTAL_BASE_URL == "https://portal.example.com"


def test_production_requires_cron_secret(monkeypatch):
    monkeypatch.delenv("CRON_SECRET", raising=False)
    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    with pytest.raises(ConfigurationError, match="CRON_SECRET"):
        _build_config("production")


def test_production_rejects_placeholder_jwt_secret(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "cron")
    monkeypatch.setenv("JWT_SECRET", "change_me_jwt_secret")
    with pytest.raises(ConfigurationError, match="JWT_SECRET"):
        _build_config("production")


def test_production_disables_debug_and_sandbox(monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "cron")
    monkeypatch.setenv("JWT_SECRET", "a-real-secret")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.delenv("SMTP_SANDBOX_MODE", raising=False)

    config = _build_config("production")

    assert config.DEBUG is False
    assert config.SMTP_SANDBOX_MODE is False
    assert config.is_production is True


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("DATABASE_URL", "mysql://db/billing", "DATABASE_URL"),
        ("INVOICE_DUE_DAYS", "-1", "INVOICE_DUE_DAYS"),
        ("DEFAULT_CURRENCY", "DOLLARS", "DEFAULT_CURRENCY"),
        ("BILLING_CRON_HOUR", "24", "BILLING_CRON_HOUR"),
        ("LOG_LEVEL", "chatty", "LOG_LEVEL"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, key, value, message):
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigurationError, match=message):
        _build_config("development")
