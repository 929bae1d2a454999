from __future__ import annotations

from billing_portal.models import Base
import billing_portal.models  # noqa: F401


def test_model_metadata_contains_billing_tables():
    expected = {
        "tenants",
        "tenant_settings",
        "users",
        "tenant_memberships",
        "clients",
        "subscriptions",
        "invoices",
    }
    assert expected == set(Base.metadata.tables.keys())


def test_invoice_primary_key_is_the_billing_key_column():
    invoices = Base.metadata.tables["invoices"]
    assert [column.name for column in invoices.primary_key.columns] == ["id"]
    assert "billing_key" in invoices.columns
