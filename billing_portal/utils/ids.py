"""Identifier generation helpers."""

from __future__ import annotations

import uuid
from datetime import datetime

from billing_portal.services.billing_clock import period_key

BILLING_KEY_PREFIX = "sub_"


def new_run_id() -> str:
    """Create a UUID4-based run identifier."""
    return str(uuid.uuid4())


def billing_key(subscription_id: str, billing_period: datetime) -> str:
    """Deterministic invoice id for one subscription billing period.

    The key doubles as the at-most-once guard: an invoice stored under it
    means the period has already been billed.
    """
    return f"{BILLING_KEY_PREFIX}{subscription_id}_{period_key(billing_period)}"


def invoice_label(invoice_id: str) -> str:
    """Human label for an invoice id; subscription invoices read `SUB-<YYYY-MM>`."""
    if invoice_id.startswith(BILLING_KEY_PREFIX):
        return f"SUB-{invoice_id.rsplit('_', 1)[-1]}"
    return invoice_id
