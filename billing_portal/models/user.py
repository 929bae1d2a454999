"""User profile and tenant membership models."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_portal.core.enums import MembershipStatus
from billing_portal.models.base import AuditMixin, Base


class User(Base, AuditMixin):
    """Profile keyed by the identity provider uid."""

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_tenant_role", "tenant_id", "role"),)

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320))
    display_name: Mapped[str | None] = mapped_column(String(255))
    # Legacy single-tenant profile fields, still consulted before memberships.
    tenant_id: Mapped[str | None] = mapped_column(String(64))
    role: Mapped[str | None] = mapped_column(String(32))


class TenantMembership(Base, AuditMixin):
    __tablename__ = "tenant_memberships"
    __table_args__ = (
        Index("idx_memberships_user", "user_id"),
        Index("idx_memberships_tenant_role", "tenant_id", "role"),
    )

    # `<uid>_<tenantId>`
    id: Mapped[str] = mapped_column(String(200), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=MembershipStatus.ACTIVE.value, nullable=False)
    client_id: Mapped[str | None] = mapped_column(String(64))

    @staticmethod
    def membership_id(user_id: str, tenant_id: str) -> str:
        return f"{user_id}_{tenant_id}"
