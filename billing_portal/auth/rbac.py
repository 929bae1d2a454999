"""Role-based authorization helpers."""

from __future__ import annotations

from billing_portal.core.enums import MembershipRole, MembershipStatus
from billing_portal.core.exceptions import AuthorizationError
from billing_portal.models import TenantMembership

# Roles allowed to trigger billing runs and administrative emails.
BILLING_OPERATOR_ROLES = frozenset({MembershipRole.OWNER.value, MembershipRole.ADMIN.value})


def is_active(membership: TenantMembership) -> bool:
    return membership.status == MembershipStatus.ACTIVE.value


def require_billing_operator(membership: TenantMembership) -> None:
    """Raise unless the membership is an active owner or admin."""
    if not is_active(membership) or membership.role not in BILLING_OPERATOR_ROLES:
        raise AuthorizationError("Not authorized")


def can_read_invoice(membership: TenantMembership, invoice_client_id: str | None) -> bool:
    """Active staff read any tenant invoice; client members only their own."""
    if not is_active(membership):
        return False
    if membership.role == MembershipRole.CLIENT.value:
        return bool(membership.client_id) and membership.client_id == invoice_client_id
    return True
