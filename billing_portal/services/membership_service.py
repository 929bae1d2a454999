"""Tenant membership and role lookups consumed by the billing entry points."""

from __future__ import annotations

from sqlalchemy import select

from billing_portal.core.enums import MembershipRole
from billing_portal.core.exceptions import AuthorizationError
from billing_portal.models import Tenant, TenantMembership, User
from billing_portal.services.base_service import BaseService


class MembershipService(BaseService):
    """Read-only lookups over users, memberships and tenants."""

    def resolve_tenant_id(self, user_id: str, requested_tenant_id: str | None = None) -> str:
        """Explicit tenant first, then the user profile, then any membership."""
        if requested_tenant_id:
            return requested_tenant_id

        user = self.db.get(User, user_id)
        if user is not None and user.tenant_id:
            return user.tenant_id

        membership = self.db.scalars(
            select(TenantMembership).where(TenantMembership.user_id == user_id).limit(1)
        ).first()
        if membership is not None:
            return membership.tenant_id
        raise AuthorizationError("User missing tenantId")

    def get_membership(self, user_id: str, tenant_id: str) -> TenantMembership:
        membership = self.db.get(TenantMembership, TenantMembership.membership_id(user_id, tenant_id))
        if membership is None:
            raise AuthorizationError("Tenant membership not found")
        return membership

    def list_tenant_ids(self) -> list[str]:
        return list(self.db.scalars(select(Tenant.id).order_by(Tenant.id)).all())

    def get_tenant_name(self, tenant_id: str) -> str:
        tenant = self.db.get(Tenant, tenant_id)
        if tenant is None or not tenant.name:
            return tenant_id
        return tenant.name

    def find_owner_email(self, tenant_id: str) -> str | None:
        owner = self.db.scalars(
            select(User)
            .where(User.tenant_id == tenant_id, User.role == MembershipRole.OWNER.value)
            .limit(1)
        ).first()
        if owner is not None:
            return owner.email or None

        membership = self.db.scalars(
            select(TenantMembership)
            .where(
                TenantMembership.tenant_id == tenant_id,
                TenantMembership.role == MembershipRole.OWNER.value,
            )
            .limit(1)
        ).first()
        if membership is None:
            return None
        user = self.db.get(User, membership.user_id)
        return user.email if user is not None and user.email else None
