"""Per-subscription invoice generation transaction."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from billing_portal.core.enums import BillingInterval, InvoiceSource, InvoiceStatus, SubscriptionStatus
from billing_portal.core.exceptions import DatabaseError, SubscriptionValidationError
from billing_portal.models import Invoice, Subscription
from billing_portal.models.base import utcnow
from billing_portal.services import billing_clock
from billing_portal.services.run_report import CreatedInvoice
from billing_portal.utils.ids import billing_key, invoice_label

logger = logging.getLogger(__name__)

_INTERVALS = {item.value for item in BillingInterval}


class GenerationOutcome(str, enum.Enum):
    GENERATED = "generated"
    # An invoice already exists under the billing key.
    SKIPPED = "skipped"
    # Subscription vanished, went inactive or was already advanced.
    NOOP = "noop"


@dataclass(frozen=True)
class GenerationResult:
    subscription_id: str
    outcome: GenerationOutcome
    invoice: CreatedInvoice | None = None
    reason: str | None = None


def validate_subscription(subscription: Subscription) -> None:
    """Raise SubscriptionValidationError when the row cannot be billed."""
    price = subscription.price
    if (
        not subscription.client_id
        or not subscription.name
        or not isinstance(price, (Decimal, int, float))
        or isinstance(price, bool)
        or not subscription.interval
    ):
        raise SubscriptionValidationError("Subscription missing required fields (client_id/name/price/interval)")
    if subscription.interval not in _INTERVALS:
        raise SubscriptionValidationError(f"Invalid interval: {subscription.interval}")
    if Decimal(str(price)) < 0:
        raise SubscriptionValidationError(f"Invalid price: {price}")
    if subscription.next_billing_date is None:
        raise SubscriptionValidationError("Subscription missing next_billing_date")


class BillingKeyConflict(DatabaseError):
    """Insert under a billing key collided with a row this transaction did not see."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Invoice key conflict: {key}")
        self.key = key


class InvoiceGenerator:
    """Creates at most one invoice per subscription billing period.

    Each call runs in its own transaction: the subscription row is re-read
    (locked where the backend supports it), the invoice is looked up under its
    deterministic billing key, and the new invoice and the advanced billing
    date are committed together or not at all.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        due_days: int = 7,
        default_currency: str = "USD",
    ) -> None:
        self.session_factory = session_factory
        self.due_days = due_days
        self.default_currency = default_currency

    def generate(self, tenant_id: str, subscription_id: str, now: datetime | None = None) -> GenerationResult:
        now = now or utcnow()
        try:
            with self.session_factory() as session, session.begin():
                return self._generate_in_transaction(session, tenant_id, subscription_id, now)
        except BillingKeyConflict as conflict:
            # A concurrent run committed the same billing key first.
            if not self._invoice_exists(conflict.key):
                raise
            logger.info(
                "billing.subscription.race_lost",
                extra={"event": "billing.subscription.race_lost", "tenant_id": tenant_id, "subscription_id": subscription_id},
            )
            return GenerationResult(subscription_id, GenerationOutcome.SKIPPED, reason="invoice-exists")

    def _generate_in_transaction(
        self, session: Session, tenant_id: str, subscription_id: str, now: datetime
    ) -> GenerationResult:
        subscription = session.scalars(
            select(Subscription)
            .where(Subscription.id == subscription_id, Subscription.tenant_id == tenant_id)
            .with_for_update()
        ).one_or_none()
        if subscription is None:
            return GenerationResult(subscription_id, GenerationOutcome.NOOP, reason="subscription-missing")
        if subscription.status != SubscriptionStatus.ACTIVE.value:
            return GenerationResult(subscription_id, GenerationOutcome.NOOP, reason="inactive")

        validate_subscription(subscription)

        billing_date = subscription.next_billing_date
        if billing_date > now:
            return GenerationResult(subscription_id, GenerationOutcome.NOOP, reason="not-due")

        key = billing_key(subscription_id, billing_date)
        if self._find_existing(session, tenant_id, key) is not None:
            return GenerationResult(subscription_id, GenerationOutcome.SKIPPED, reason="invoice-exists")

        amount = Decimal(str(subscription.price))
        currency = subscription.currency or self.default_currency
        due_date = now + timedelta(days=self.due_days)

        session.add(
            Invoice(
                id=key,
                tenant_id=tenant_id,
                client_id=subscription.client_id,
                client_name=subscription.client_name,
                title=subscription.name,
                invoice_number=key,
                amount=amount,
                currency=currency,
                status=InvoiceStatus.UNPAID.value,
                issue_date=now,
                due_date=due_date,
                source=InvoiceSource.SUBSCRIPTION.value,
                subscription_id=subscription_id,
                billing_key=key,
            )
        )
        subscription.next_billing_date = billing_clock.advance(billing_date, subscription.interval)
        subscription.updated_at = now
        try:
            session.flush()
        except IntegrityError as exc:
            raise BillingKeyConflict(key) from exc

        return GenerationResult(
            subscription_id,
            GenerationOutcome.GENERATED,
            invoice=CreatedInvoice(
                invoice_id=key,
                client_id=subscription.client_id,
                invoice_label=invoice_label(key),
                amount=amount,
                currency=currency,
                due_date=due_date,
            ),
        )

    def _find_existing(self, session: Session, tenant_id: str, key: str) -> str | None:
        stmt = select(Invoice.id).where(Invoice.id == key, Invoice.tenant_id == tenant_id)
        return session.scalars(stmt).first()

    def _invoice_exists(self, key: str) -> bool:
        with self.session_factory() as session:
            return session.get(Invoice, key) is not None
