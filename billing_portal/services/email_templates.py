"""Message builders for billing notifications."""

from __future__ import annotations

from collections.abc import Iterable
from html import escape

from billing_portal.services.email_sender import EmailMessage
from billing_portal.services.run_report import CreatedInvoice


def invoice_pdf_url(portal_base_url: str, invoice_id: str) -> str:
    return f"{portal_base_url.rstrip('/')}/api/v1/invoices/{invoice_id}/pdf"


def build_client_invoices_email(
    to: str,
    client_name: str,
    tenant_name: str,
    items: Iterable[CreatedInvoice],
    portal_base_url: str,
    reply_to: str | None = None,
) -> EmailMessage:
    """One summary message listing every invoice generated for a client."""
    items = list(items)
    base = portal_base_url.rstrip("/")

    lines = "\n".join(
        f"- {item.invoice_label} | {item.currency} {item.amount} | Due: {item.due_date_label}\n"
        f"  PDF: <{invoice_pdf_url(base, item.invoice_id)}>"
        for item in items
    )
    text = (
        f"Hello {client_name},\n\n"
        f"New invoice(s) have been generated for you by {tenant_name}:\n\n"
        f"{lines}\n\n"
        "Please login to the client portal to view details.\n\n"
        f"- {tenant_name}\n"
    )

    html_items = "".join(
        '<li style="margin-bottom:10px;">'
        f"<div><strong>{escape(item.invoice_label)}</strong> - {escape(item.currency)} {item.amount}"
        f" - Due: {item.due_date_label}</div>"
        f'<div><a href="{escape(invoice_pdf_url(base, item.invoice_id))}">Download PDF</a></div>'
        "</li>"
        for item in items
    )
    html = (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6;">'
        f"<p>Hello {escape(client_name)},</p>"
        f"<p>New invoice(s) have been generated for you by {escape(tenant_name)}:</p>"
        f"<ul>{html_items}</ul>"
        f'<p><a href="{escape(base)}/login">Login to the portal</a></p>'
        "</div>"
    )
    return EmailMessage(
        to=to,
        subject=f"New invoice(s) available - {tenant_name}",
        text_body=text,
        html_body=html,
        reply_to=reply_to,
    )


def build_admin_summary_email(
    to: str,
    tenant_name: str,
    generated: int,
    skipped: int,
    errors: int,
    portal_base_url: str,
) -> EmailMessage:
    login_url = f"{portal_base_url.rstrip('/')}/login"
    text = "\n".join(
        [
            f"Invoices have been generated for {tenant_name}.",
            "",
            f"Generated: {generated}",
            f"Skipped: {skipped}",
            f"Errors: {errors}",
            "",
            f"Login to the portal: <{login_url}>",
        ]
    )
    html = (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6;">'
        f"<h2>Invoices Generated - {escape(tenant_name)}</h2>"
        "<ul>"
        f"<li><strong>Generated:</strong> {generated}</li>"
        f"<li><strong>Skipped:</strong> {skipped}</li>"
        f"<li><strong>Errors:</strong> {errors}</li>"
        "</ul>"
        f'<p><a href="{escape(login_url)}">Login to Portal</a></p>'
        "</div>"
    )
    return EmailMessage(
        to=to,
        subject=f"Invoices Generated - {tenant_name}",
        text_body=text,
        html_body=html,
    )
