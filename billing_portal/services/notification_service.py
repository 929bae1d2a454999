"""Client and administrator notifications for billing runs."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from billing_portal.core.config import Config, get_config
from billing_portal.core.exceptions import NotificationError, RateLimitError
from billing_portal.core.logging import LogContext, build_log_event
from billing_portal.models import Client, TenantSettings
from billing_portal.models.base import utcnow
from billing_portal.services.email_sender import EmailTransport
from billing_portal.services.email_templates import build_admin_summary_email, build_client_invoices_email
from billing_portal.services.membership_service import MembershipService
from billing_portal.services.run_report import AdminNotificationResult, CreatedInvoice, EmailDetail, EmailSummary

logger = logging.getLogger(__name__)

TEST_EMAIL_SETTINGS_KEY = "email_test"


class NotificationDispatcher:
    """Sends billing emails through an injected transport.

    A failure for one recipient is recorded and never interrupts the others.
    """

    def __init__(self, session_factory: sessionmaker, transport: EmailTransport, config: Config | None = None) -> None:
        self.session_factory = session_factory
        self.transport = transport
        self.config = config or get_config()

    def notify_clients(self, tenant_id: str, batches: dict[str, list[CreatedInvoice]]) -> EmailSummary:
        summary = EmailSummary(attempted=bool(batches))
        if not batches:
            return summary

        tenant_name = self._tenant_name(tenant_id)
        for client_id, invoices in batches.items():
            summary.record(self.notify_client(tenant_id, client_id, invoices, tenant_name=tenant_name))
        return summary

    def _tenant_name(self, tenant_id: str) -> str:
        """Display name for email subjects; the tenant id stands in when the lookup fails."""
        try:
            with self.session_factory() as session:
                return MembershipService(db=session).get_tenant_name(tenant_id)
        except SQLAlchemyError:
            logger.exception(
                "notification.tenant_lookup.failed",
                extra=build_log_event("notification.tenant_lookup.failed", LogContext(tenant_id=tenant_id)),
            )
            return tenant_id

    def notify_client(
        self,
        tenant_id: str,
        client_id: str,
        invoices: list[CreatedInvoice],
        tenant_name: str | None = None,
    ) -> EmailDetail:
        try:
            with self.session_factory() as session:
                client = session.scalars(
                    select(Client).where(Client.id == client_id, Client.tenant_id == tenant_id)
                ).first()
                if tenant_name is None:
                    tenant_name = MembershipService(db=session).get_tenant_name(tenant_id)
            if client is None:
                return EmailDetail(client_id=client_id, sent=False, error="Client record not found")
            if not client.email:
                return EmailDetail(client_id=client_id, sent=False, error="Client email missing")

            message = build_client_invoices_email(
                to=client.email,
                client_name=client.name or client_id,
                tenant_name=tenant_name,
                items=invoices,
                portal_base_url=self.config.PORTAL_BASE_URL,
                reply_to=self.config.SMTP_USERNAME,
            )
            receipt = self.transport.send(message)
        except NotificationError as exc:
            logger.exception(
                "notification.client.failed",
                extra=build_log_event("notification.client.failed", LogContext(tenant_id=tenant_id).for_client(client_id)),
            )
            return EmailDetail(client_id=client_id, sent=False, error=str(exc), code=exc.code, response=exc.response)
        except Exception as exc:
            logger.exception(
                "notification.client.failed",
                extra=build_log_event("notification.client.failed", LogContext(tenant_id=tenant_id).for_client(client_id)),
            )
            return EmailDetail(client_id=client_id, sent=False, error=str(exc) or exc.__class__.__name__)

        logger.info(
            "notification.client.sent",
            extra=build_log_event("notification.client.sent", LogContext(tenant_id=tenant_id).for_client(client_id)),
        )
        return EmailDetail(client_id=client_id, sent=True, to=client.email, response=receipt.response)

    def send_test_notification(
        self,
        tenant_id: str,
        override_to: str | None = None,
        now: datetime | None = None,
    ) -> AdminNotificationResult:
        """Send a sample summary to the tenant owner, at most once per cooldown.

        An explicit recipient bypasses the cooldown.
        """
        now = now or utcnow()
        override_to = (override_to or "").strip() or None
        cooldown = timedelta(seconds=self.config.TEST_EMAIL_COOLDOWN_SECONDS)

        with self.session_factory() as session:
            lookups = MembershipService(db=session)
            if override_to is None:
                settings = self._get_settings(session, tenant_id)
                if settings is not None and settings.last_sent_at is not None:
                    if settings.last_sent_at > now - cooldown:
                        minutes = max(1, self.config.TEST_EMAIL_COOLDOWN_SECONDS // 60)
                        raise RateLimitError(f"Please wait {minutes} minutes")
            tenant_name = lookups.get_tenant_name(tenant_id)
            recipient = override_to or lookups.find_owner_email(tenant_id)

        if not recipient:
            return AdminNotificationResult(attempted=False, sent=False, error="No owner email found")

        message = build_admin_summary_email(
            to=recipient,
            tenant_name=tenant_name,
            generated=1,
            skipped=0,
            errors=0,
            portal_base_url=self.config.PORTAL_BASE_URL,
        )
        try:
            receipt = self.transport.send(message)
        except NotificationError as exc:
            logger.exception(
                "notification.test.failed",
                extra=build_log_event("notification.test.failed", LogContext(tenant_id=tenant_id)),
            )
            return AdminNotificationResult(
                attempted=True, sent=False, to=recipient, error=str(exc), code=exc.code, response=exc.response
            )

        self._mark_test_sent(tenant_id, now)
        return AdminNotificationResult(attempted=True, sent=True, to=recipient, response=receipt.response)

    def _get_settings(self, session, tenant_id: str) -> TenantSettings | None:
        return session.scalars(
            select(TenantSettings).where(
                TenantSettings.tenant_id == tenant_id,
                TenantSettings.key == TEST_EMAIL_SETTINGS_KEY,
            )
        ).first()

    def _mark_test_sent(self, tenant_id: str, sent_at: datetime) -> None:
        with self.session_factory() as session, session.begin():
            settings = self._get_settings(session, tenant_id)
            if settings is None:
                session.add(TenantSettings(tenant_id=tenant_id, key=TEST_EMAIL_SETTINGS_KEY, last_sent_at=sent_at))
            else:
                settings.last_sent_at = sent_at
