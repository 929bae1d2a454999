"""Recurring billing runs for one tenant or for every tenant."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from billing_portal.core.config import Config, get_config
from billing_portal.core.logging import LogContext, build_log_event
from billing_portal.models.base import utcnow
from billing_portal.services.invoice_generation import GenerationOutcome, InvoiceGenerator
from billing_portal.services.membership_service import MembershipService
from billing_portal.services.notification_service import NotificationDispatcher
from billing_portal.services.run_report import GenerationRunResult, SweepReport, TenantRunSummary
from billing_portal.services.subscription_scanner import SubscriptionScanner
from billing_portal.utils.ids import new_run_id

logger = logging.getLogger(__name__)


class BillingRunService:
    """Scans due subscriptions, invoices each one and notifies clients.

    Subscriptions are processed one transaction at a time; a failure is
    recorded against its subscription and the run moves on. Only a failed
    scan aborts a tenant run.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: NotificationDispatcher,
        generator: InvoiceGenerator | None = None,
        config: Config | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.config = config or get_config()
        self.generator = generator or InvoiceGenerator(
            session_factory,
            due_days=self.config.INVOICE_DUE_DAYS,
            default_currency=self.config.DEFAULT_CURRENCY,
        )

    def run_for_tenant(self, tenant_id: str, now: datetime | None = None) -> GenerationRunResult:
        now = now or utcnow()
        context = LogContext(tenant_id=tenant_id, run_id=new_run_id(), task_name="billing.run_for_tenant")

        with self.session_factory() as session:
            due_ids = [subscription.id for subscription in SubscriptionScanner(db=session).find_due(tenant_id, now)]

        result = GenerationRunResult(tenant_id=tenant_id, due_count=len(due_ids))
        logger.info("billing.run.start", extra=build_log_event("billing.run.start", context, due_count=len(due_ids)))

        for subscription_id in due_ids:
            try:
                outcome = self.generator.generate(tenant_id, subscription_id, now=now)
            except Exception as exc:
                logger.exception(
                    "billing.subscription.failed",
                    extra=build_log_event("billing.subscription.failed", context.for_subscription(subscription_id)),
                )
                result.record_error(
                    subscription_id,
                    str(exc) or exc.__class__.__name__,
                    code=getattr(exc, "code", None),
                )
                continue

            if outcome.outcome is GenerationOutcome.GENERATED and outcome.invoice is not None:
                result.record_created(outcome.invoice)
            elif outcome.outcome is GenerationOutcome.SKIPPED:
                result.skipped_count += 1

        result.email = self.dispatcher.notify_clients(tenant_id, result.created_invoices)

        logger.info(
            "billing.run.finish",
            extra=build_log_event(
                "billing.run.finish",
                context,
                generated_count=result.generated_count,
                skipped_count=result.skipped_count,
                errors_count=result.errors_count,
                emails_sent=result.email.sent_count,
                emails_failed=result.email.failed_count,
            ),
        )
        return result

    def run_for_all_tenants(self, now: datetime | None = None) -> SweepReport:
        now = now or utcnow()
        with self.session_factory() as session:
            tenant_ids = MembershipService(db=session).list_tenant_ids()

        report = SweepReport(ran_at=now, tenant_count=len(tenant_ids))
        for tenant_id in tenant_ids:
            try:
                result = self.run_for_tenant(tenant_id, now=now)
            except Exception as exc:
                logger.exception(
                    "billing.tenant.failed",
                    extra={"event": "billing.tenant.failed", "tenant_id": tenant_id},
                )
                report.add(TenantRunSummary.failed(tenant_id, str(exc) or exc.__class__.__name__))
                continue
            report.add(TenantRunSummary.from_result(result))
        return report

    def run_scheduled(self, tenant_id: str | None = None, now: datetime | None = None) -> SweepReport:
        """Cron entry: one tenant (errors propagate) or the full sweep."""
        now = now or utcnow()
        if not tenant_id:
            return self.run_for_all_tenants(now=now)

        result = self.run_for_tenant(tenant_id, now=now)
        report = SweepReport(ran_at=now, tenant_count=1, detail=result)
        report.add(TenantRunSummary.from_result(result))
        return report
