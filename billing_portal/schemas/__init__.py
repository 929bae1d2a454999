"""Pydantic schema package for API contracts."""

from billing_portal.schemas.billing import (
    AdminEmailResponse,
    GenerateInvoicesRequest,
    GenerationRunResponse,
    SweepResponse,
    TenantRunResponse,
    SendTestEmailRequest,
)

__all__ = [
    "AdminEmailResponse",
    "GenerateInvoicesRequest",
    "GenerationRunResponse",
    "SweepResponse",
    "TenantRunResponse",
    "SendTestEmailRequest",
]
