"""Invoice document endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.orm import Session

from billing_portal.api.v1._authz import authenticate, raise_http
from billing_portal.auth.tenant_context import resolve_tenant_context
from billing_portal.core.dependencies import get_db_session
from billing_portal.core.exceptions import PortalException
from billing_portal.services.invoice_pdf import render_invoice_pdf
from billing_portal.services.invoice_service import InvoiceService
from billing_portal.services.membership_service import MembershipService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: str,
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db_session),
) -> Response:
    try:
        identity = authenticate(authorization)
        context = resolve_tenant_context(MembershipService(db=db), identity.uid)
        data = InvoiceService(db=db).build_pdf_data(context.membership, invoice_id)
    except PortalException as exc:
        raise_http(exc)

    return Response(
        content=render_invoice_pdf(data),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{data.invoice_number}.pdf"'},
    )
