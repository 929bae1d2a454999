"""Dependency providers for API handlers and background workers."""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy.orm import Session

from billing_portal.core.config import get_config
from billing_portal.database.db import get_db, get_session_factory
from billing_portal.services.billing_run_service import BillingRunService
from billing_portal.services.email_sender import EmailSender
from billing_portal.services.notification_service import NotificationDispatcher


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


@lru_cache(maxsize=1)
def get_email_sender() -> EmailSender:
    """Process-wide transport handle."""
    return EmailSender(get_config())


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(get_session_factory(), get_email_sender(), config=get_config())


def get_billing_run_service() -> BillingRunService:
    """Create a billing run service for request or task scope."""
    return BillingRunService(get_session_factory(), get_notification_dispatcher(), config=get_config())
