"""Billing run request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from billing_portal.services.run_report import SweepReport, TenantRunSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class GenerateInvoicesRequest(CamelModel):
    tenant_id: str | None = Field(default=None, max_length=64)


class SendTestEmailRequest(CamelModel):
    to: str | None = Field(default=None, max_length=320)


class SubscriptionErrorResponse(CamelModel):
    subscription_id: str
    message: str
    code: str | int | None = None


class EmailDetailResponse(CamelModel):
    client_id: str
    sent: bool
    to: str | None = None
    error: str | None = None
    code: str | int | None = None
    response: str | None = None


class EmailSummaryResponse(CamelModel):
    attempted: bool
    sent_count: int
    failed_count: int
    details: list[EmailDetailResponse] = Field(default_factory=list)


class CreatedInvoiceResponse(CamelModel):
    invoice_id: str
    invoice_label: str
    amount: Decimal
    currency: str
    due_date: datetime


class GenerationRunResponse(CamelModel):
    tenant_id: str
    due_count: int
    generated_count: int
    skipped_count: int
    errors_count: int
    errors: list[SubscriptionErrorResponse] = Field(default_factory=list)
    email: EmailSummaryResponse
    created_invoices: dict[str, list[CreatedInvoiceResponse]] = Field(default_factory=dict)


class TenantEmailCounts(CamelModel):
    attempted: bool
    sent_count: int
    failed_count: int


class TenantRunResponse(CamelModel):
    tenant_id: str
    due_count: int
    generated_count: int
    skipped_count: int
    errors_count: int
    email: TenantEmailCounts
    error: str | None = None


class RunTotals(CamelModel):
    generated: int
    skipped: int
    errors: int


class SweepResponse(CamelModel):
    ran_at: datetime
    tenant_count: int
    totals: RunTotals
    results: list[TenantRunResponse]
    detail: GenerationRunResponse | None = None


class AdminEmailResponse(CamelModel):
    attempted: bool
    sent: bool
    to: str | None = None
    error: str | None = None
    code: str | int | None = None
    response: str | None = None


def tenant_run_response(summary: TenantRunSummary) -> TenantRunResponse:
    return TenantRunResponse(
        tenant_id=summary.tenant_id,
        due_count=summary.due_count,
        generated_count=summary.generated_count,
        skipped_count=summary.skipped_count,
        errors_count=summary.errors_count,
        email=TenantEmailCounts(
            attempted=summary.email_attempted,
            sent_count=summary.email_sent_count,
            failed_count=summary.email_failed_count,
        ),
        error=summary.error,
    )


def sweep_response(report: SweepReport) -> SweepResponse:
    return SweepResponse(
        ran_at=report.ran_at,
        tenant_count=report.tenant_count,
        totals=RunTotals(
            generated=report.total_generated,
            skipped=report.total_skipped,
            errors=report.total_errors,
        ),
        results=[tenant_run_response(summary) for summary in report.results],
        detail=GenerationRunResponse.model_validate(report.detail) if report.detail is not None else None,
    )
