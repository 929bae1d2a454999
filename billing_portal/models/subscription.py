"""Subscription model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_portal.core.enums import SubscriptionStatus
from billing_portal.models.base import AuditMixin, Base, TenantScopedMixin


class Subscription(Base, AuditMixin, TenantScopedMixin):
    """Recurring billing agreement for one client.

    Billing fields stay nullable: rows are written by operators through the
    portal and are validated when a billing run picks them up.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (Index("idx_subscriptions_tenant_status_next", "tenant_id", "status", "next_billing_date"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str | None] = mapped_column(String(64))
    client_name: Mapped[str | None] = mapped_column(String(255))
    name: Mapped[str | None] = mapped_column(String(255))
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    currency: Mapped[str | None] = mapped_column(String(3))
    interval: Mapped[str | None] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16), default=SubscriptionStatus.ACTIVE.value, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(DateTime)
    next_billing_date: Mapped[datetime | None] = mapped_column(DateTime)
