"""Read-only lookup of subscriptions whose billing date has arrived."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from billing_portal.core.enums import SubscriptionStatus
from billing_portal.core.exceptions import DatabaseError
from billing_portal.models import Subscription
from billing_portal.services.base_service import BaseService


class SubscriptionScanner(BaseService):
    """Candidate selection for a billing run.

    Results are a snapshot; the invoice transaction re-reads every row
    before acting on it.
    """

    def find_due(self, tenant_id: str, as_of: datetime) -> list[Subscription]:
        stmt = select(Subscription).where(
            Subscription.tenant_id == tenant_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
            Subscription.next_billing_date.is_not(None),
            Subscription.next_billing_date <= as_of,
        )
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to scan subscriptions for tenant {tenant_id}: {exc}") from exc
