"""Tenant-scoped invoice retrieval for document downloads."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from billing_portal.auth.rbac import can_read_invoice
from billing_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from billing_portal.models import Client, Invoice, TenantMembership
from billing_portal.services.base_service import BaseService
from billing_portal.services.invoice_pdf import InvoicePdfData
from billing_portal.services.membership_service import MembershipService
from billing_portal.services.run_report import format_due_date


class InvoiceService(BaseService):
    """Loads invoices on behalf of a resolved tenant member."""

    def get_invoice(self, tenant_id: str, invoice_id: str) -> Invoice | None:
        return self.db.scalars(
            select(Invoice).where(Invoice.id == invoice_id, Invoice.tenant_id == tenant_id)
        ).first()

    def build_pdf_data(self, membership: TenantMembership, invoice_id: str) -> InvoicePdfData:
        invoice = self.get_invoice(membership.tenant_id, invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found")
        if not can_read_invoice(membership, invoice.client_id):
            raise AuthorizationError("Access denied")
        if not invoice.client_id:
            raise ValidationError("Invoice has no client")

        client = self.db.scalars(
            select(Client).where(Client.id == invoice.client_id, Client.tenant_id == membership.tenant_id)
        ).first()

        return InvoicePdfData(
            tenant_name=MembershipService(db=self.db).get_tenant_name(membership.tenant_id),
            invoice_number=invoice.invoice_number or f"INV-{invoice.id[:8]}",
            client_name=invoice.client_name or (client.name if client else None),
            client_email=client.email if client else None,
            amount=Decimal(str(invoice.amount or 0)),
            currency=invoice.currency,
            due_date=format_due_date(invoice.due_date) if invoice.due_date else None,
            status=invoice.status,
            notes=invoice.notes,
            line_items=list(invoice.line_items or []),
        )
