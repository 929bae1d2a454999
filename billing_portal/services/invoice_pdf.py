"""PDF rendering for a single invoice."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from io import BytesIO
from typing import Any

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

PLACEHOLDER = "-"


@dataclass(frozen=True)
class InvoicePdfData:
    tenant_name: str
    invoice_number: str
    client_name: str | None
    client_email: str | None
    amount: Decimal
    currency: str
    due_date: str | None
    status: str | None
    notes: str | None = None
    line_items: list[dict[str, Any]] = field(default_factory=list)


def _money(currency: str, amount: Any) -> str:
    return f"{currency} {Decimal(str(amount or 0)):,.2f}"


def render_invoice_pdf(data: InvoicePdfData) -> bytes:
    """Render the invoice to PDF bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.6 * inch,
        leftMargin=0.6 * inch,
        topMargin=0.6 * inch,
        bottomMargin=0.8 * inch,
        title=f"Invoice {data.invoice_number}",
    )
    styles = getSampleStyleSheet()
    company_style = ParagraphStyle(
        "Company",
        parent=styles["Heading1"],
        fontSize=18,
        textColor=colors.HexColor("#0F172A"),
        alignment=TA_LEFT,
        spaceAfter=12,
    )

    elements: list[Any] = [
        Paragraph(data.tenant_name, company_style),
        Paragraph("Invoice", styles["Heading2"]),
        Spacer(1, 0.15 * inch),
    ]

    summary_rows = [
        ["Invoice #", data.invoice_number],
        ["Client", data.client_name or PLACEHOLDER],
        ["Email", data.client_email or PLACEHOLDER],
        ["Amount", _money(data.currency, data.amount)],
        ["Due date", data.due_date or PLACEHOLDER],
        ["Status", data.status or PLACEHOLDER],
    ]
    summary_table = Table(summary_rows, colWidths=[1.4 * inch, 4.8 * inch])
    summary_table.setStyle(
        TableStyle(
            [
                ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#64748B")),
                ("FONTNAME", (1, 0), (1, -1), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -1), 11),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.append(summary_table)

    if data.line_items:
        elements.append(Spacer(1, 0.3 * inch))
        elements.append(Paragraph("<b>Line items</b>", styles["Normal"]))
        rows = [["Description", "Amount"]]
        for item in data.line_items:
            rows.append(
                [
                    str(item.get("description", "")),
                    _money(item.get("currency") or data.currency, item.get("amount", 0)),
                ]
            )
        items_table = Table(rows, colWidths=[4.4 * inch, 1.8 * inch])
        items_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#E2E8F0")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(items_table)

    if data.notes:
        elements.append(Spacer(1, 0.3 * inch))
        elements.append(Paragraph("<b>Notes</b>", styles["Normal"]))
        elements.append(Paragraph(data.notes, styles["Normal"]))

    doc.build(elements)
    return buffer.getvalue()
