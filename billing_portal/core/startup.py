"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from billing_portal.core.config import get_config
from billing_portal.core.logging_config import configure_logging
from billing_portal.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Fail-fast config and connectivity checks."""
    config = get_config()
    database_ok = verify_database_connection()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    if not config.CRON_SECRET:
        logger.warning("startup.cron_secret_missing", extra={"event": "startup.cron_secret_missing"})

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": get_active_database_url().split("://", 1)[0],
            "smtp_sandbox_mode": config.SMTP_SANDBOX_MODE,
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
