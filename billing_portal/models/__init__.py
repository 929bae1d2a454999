"""SQLAlchemy models for the tenant billing schema."""

from billing_portal.models.base import Base
from billing_portal.models.client import Client
from billing_portal.models.invoice import Invoice
from billing_portal.models.subscription import Subscription
from billing_portal.models.tenant import Tenant, TenantSettings
from billing_portal.models.user import TenantMembership, User

__all__ = [
    "Base",
    "Client",
    "Invoice",
    "Subscription",
    "Tenant",
    "TenantMembership",
    "TenantSettings",
    "User",
]
