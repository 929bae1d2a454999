"""Result records returned by billing runs and notification sends."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


def format_due_date(value: datetime) -> str:
    """`M/D/YYYY`, the format clients see in invoice emails."""
    return f"{value.month}/{value.day}/{value.year}"


@dataclass(frozen=True)
class CreatedInvoice:
    invoice_id: str
    client_id: str
    invoice_label: str
    amount: Decimal
    currency: str
    due_date: datetime

    @property
    def due_date_label(self) -> str:
        return format_due_date(self.due_date)


@dataclass
class SubscriptionError:
    subscription_id: str
    message: str
    code: str | int | None = None


@dataclass
class EmailDetail:
    client_id: str
    sent: bool
    to: str | None = None
    error: str | None = None
    code: str | int | None = None
    response: str | None = None


@dataclass
class EmailSummary:
    attempted: bool = False
    sent_count: int = 0
    failed_count: int = 0
    details: list[EmailDetail] = field(default_factory=list)

    def record(self, detail: EmailDetail) -> None:
        self.details.append(detail)
        if detail.sent:
            self.sent_count += 1
        else:
            self.failed_count += 1


@dataclass
class GenerationRunResult:
    """Outcome of one tenant run.

    ``due_count`` comes from the initial scan while the other counters come
    from the per-subscription transactions, so rows that went inactive in
    between are counted as due but nowhere else.
    """

    tenant_id: str
    due_count: int = 0
    generated_count: int = 0
    skipped_count: int = 0
    errors_count: int = 0
    errors: list[SubscriptionError] = field(default_factory=list)
    email: EmailSummary = field(default_factory=EmailSummary)
    created_invoices: dict[str, list[CreatedInvoice]] = field(default_factory=dict)

    def record_error(self, subscription_id: str, message: str, code: str | int | None = None) -> None:
        self.errors_count += 1
        self.errors.append(SubscriptionError(subscription_id=subscription_id, message=message, code=code))

    def record_created(self, invoice: CreatedInvoice) -> None:
        self.generated_count += 1
        self.created_invoices.setdefault(invoice.client_id, []).append(invoice)


@dataclass
class TenantRunSummary:
    tenant_id: str
    due_count: int = 0
    generated_count: int = 0
    skipped_count: int = 0
    errors_count: int = 0
    email_attempted: bool = False
    email_sent_count: int = 0
    email_failed_count: int = 0
    error: str | None = None

    @classmethod
    def from_result(cls, result: GenerationRunResult) -> "TenantRunSummary":
        return cls(
            tenant_id=result.tenant_id,
            due_count=result.due_count,
            generated_count=result.generated_count,
            skipped_count=result.skipped_count,
            errors_count=result.errors_count,
            email_attempted=result.email.attempted,
            email_sent_count=result.email.sent_count,
            email_failed_count=result.email.failed_count,
        )

    @classmethod
    def failed(cls, tenant_id: str, message: str) -> "TenantRunSummary":
        return cls(tenant_id=tenant_id, errors_count=1, error=message)


@dataclass
class SweepReport:
    ran_at: datetime
    tenant_count: int = 0
    total_generated: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    results: list[TenantRunSummary] = field(default_factory=list)
    detail: GenerationRunResult | None = None

    def add(self, summary: TenantRunSummary) -> None:
        self.results.append(summary)
        self.total_generated += summary.generated_count
        self.total_skipped += summary.skipped_count
        self.total_errors += summary.errors_count


@dataclass
class AdminNotificationResult:
    attempted: bool
    sent: bool
    to: str | None = None
    error: str | None = None
    code: str | int | None = None
    response: str | None = None
