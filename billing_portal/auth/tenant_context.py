"""Tenant context resolution for authenticated callers."""

from __future__ import annotations

from dataclasses import dataclass

from billing_portal.auth.rbac import require_billing_operator
from billing_portal.models import TenantMembership
from billing_portal.services.membership_service import MembershipService


@dataclass(frozen=True)
class TenantContext:
    tenant_id: str
    user_id: str
    role: str
    membership: TenantMembership


def resolve_tenant_context(
    memberships: MembershipService,
    user_id: str,
    requested_tenant_id: str | None = None,
    require_operator: bool = False,
) -> TenantContext:
    """Resolve the caller's tenant and membership, optionally requiring owner/admin."""
    tenant_id = memberships.resolve_tenant_id(user_id, requested_tenant_id)
    membership = memberships.get_membership(user_id, tenant_id)
    if require_operator:
        require_billing_operator(membership)
    return TenantContext(tenant_id=tenant_id, user_id=user_id, role=membership.role, membership=membership)
