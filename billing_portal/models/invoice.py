"""Invoice model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from billing_portal.core.enums import InvoiceSource, InvoiceStatus
from billing_portal.models.base import AuditMixin, Base, TenantScopedMixin


class Invoice(Base, AuditMixin, TenantScopedMixin):
    """Billable line for one client.

    Subscription invoices use the billing key `sub_<subscriptionId>_<YYYY-MM>`
    as their primary key, so the row itself guards against double billing.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_tenant_status", "tenant_id", "status"),
        Index("idx_invoices_tenant_client", "tenant_id", "client_id"),
    )

    id: Mapped[str] = mapped_column(String(160), primary_key=True)
    client_id: Mapped[str | None] = mapped_column(String(64))
    client_name: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str | None] = mapped_column(String(255))
    invoice_number: Mapped[str | None] = mapped_column(String(160))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=InvoiceStatus.UNPAID.value, nullable=False)
    issue_date: Mapped[datetime | None] = mapped_column(DateTime)
    due_date: Mapped[datetime | None] = mapped_column(DateTime)
    notes: Mapped[str | None] = mapped_column(Text)
    line_items: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)
    source: Mapped[str] = mapped_column(String(16), default=InvoiceSource.MANUAL.value, nullable=False)
    subscription_id: Mapped[str | None] = mapped_column(String(64), index=True)
    billing_key: Mapped[str | None] = mapped_column(String(160))
