from __future__ import annotations

from datetime import datetime

import pytest
from fastapi import HTTPException

import billing_portal.api.v1._authz as authz_module
from billing_portal.api.v1.billing import admin_generate_invoices, admin_test_email, cron_generate_invoices
from billing_portal.api.v1.invoices import download_invoice_pdf
from billing_portal.auth.jwt import create_id_token
from billing_portal.schemas.billing import GenerateInvoicesRequest, SendTestEmailRequest
from billing_portal.services.billing_run_service import BillingRunService
from billing_portal.services.notification_service import NotificationDispatcher


@pytest.fixture(autouse=True)
def _patch_config(monkeypatch, test_config):
    monkeypatch.setattr(authz_module, "get_config", lambda: test_config)


@pytest.fixture
def dispatcher(session_factory, transport, test_config):
    return NotificationDispatcher(session_factory, transport, config=test_config)


@pytest.fixture
def run_service(session_factory, dispatcher, test_config):
    return BillingRunService(session_factory, dispatcher, config=test_config)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _bearer(user_id: str) -> str:
    return f"Bearer {create_id_token(user_id, secret='test-secret')}"


def _seed_tenant_with_due_subscription(seed) -> None:
    seed.tenant()
    seed.client("c1", email="billing@client.example")
    seed.subscription("s1", next_billing_date=datetime(2026, 3, 1))
    seed.member("u_owner", email="owner@acme.example", profile_tenant=True)


def test_admin_generate_returns_run_counts(seed, db, run_service):
    _seed_tenant_with_due_subscription(seed)

    body = admin_generate_invoices(payload=None, authorization=_bearer("u_owner"), db=db, service=run_service)

    assert body["tenantId"] == "t1"
    assert body["dueCount"] == 1
    assert body["generatedCount"] == 1
    assert body["skippedCount"] == 0
    assert body["email"]["sentCount"] == 1
    assert body["createdInvoices"]["c1"][0]["invoiceId"] == "sub_s1_2026-03"


def test_admin_generate_without_token_is_401(db, run_service):
    with pytest.raises(HTTPException) as exc_info:
        admin_generate_invoices(payload=None, authorization=None, db=db, service=run_service)
    assert exc_info.value.status_code == 401


def test_admin_generate_for_staff_is_403(seed, db, run_service):
    seed.tenant()
    seed.member("u_staff", role="staff")

    with pytest.raises(HTTPException) as exc_info:
        admin_generate_invoices(
            payload=GenerateInvoicesRequest(tenant_id="t1"),
            authorization=_bearer("u_staff"),
            db=db,
            service=run_service,
        )
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == {"error": "Not authorized"}


def test_cron_rejects_wrong_secret(run_service):
    with pytest.raises(HTTPException) as exc_info:
        cron_generate_invoices(tenant_id=None, x_cron_secret="nope", authorization=None, service=run_service)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == {"error": "Unauthorized"}


def test_cron_accepts_bearer_secret_and_sweeps(seed, run_service):
    _seed_tenant_with_due_subscription(seed)
    seed.tenant("t2", name="Other")

    body = cron_generate_invoices(
        tenant_id=None, x_cron_secret=None, authorization="Bearer cron-secret", service=run_service
    )

    assert body["tenantCount"] == 2
    assert body["totals"] == {"generated": 1, "skipped": 0, "errors": 0}
    assert "detail" not in body
    assert "ranAt" in body


def test_cron_single_tenant_includes_detail(seed, run_service):
    _seed_tenant_with_due_subscription(seed)

    body = cron_generate_invoices(tenant_id="t1", x_cron_secret="cron-secret", authorization=None, service=run_service)

    assert body["tenantCount"] == 1
    assert body["detail"]["generatedCount"] == 1


def test_cron_single_tenant_failure_is_500(run_service):
    class _Exploding(BillingRunService):
        def run_for_tenant(self, tenant_id, now=None):
            raise RuntimeError("scan failed")

    service = _Exploding(run_service.session_factory, run_service.dispatcher, config=run_service.config)
    with pytest.raises(HTTPException) as exc_info:
        cron_generate_invoices(tenant_id="t1", x_cron_secret="cron-secret", authorization=None, service=service)
    assert exc_info.value.status_code == 500
    assert exc_info.value.detail["error"] == "scan failed"
    assert "ranAt" in exc_info.value.detail


def test_admin_test_email_then_rate_limited(seed, db, dispatcher, transport):
    seed.tenant()
    seed.member("u_owner", email="owner@acme.example", profile_tenant=True)

    body = admin_test_email(payload=None, authorization=_bearer("u_owner"), db=db, dispatcher=dispatcher)
    assert body["email"]["sent"] is True
    assert body["email"]["to"] == "owner@acme.example"

    with pytest.raises(HTTPException) as exc_info:
        admin_test_email(payload=None, authorization=_bearer("u_owner"), db=db, dispatcher=dispatcher)
    assert exc_info.value.status_code == 429
    assert exc_info.value.detail["email"]["attempted"] is False

    override = admin_test_email(
        payload=SendTestEmailRequest(to="ops@acme.example"),
        authorization=_bearer("u_owner"),
        db=db,
        dispatcher=dispatcher,
    )
    assert override["email"]["to"] == "ops@acme.example"
    assert len(transport.sent) == 2


def test_invoice_pdf_download(seed, db, run_service):
    _seed_tenant_with_due_subscription(seed)
    run_service.run_for_tenant("t1")

    response = download_invoice_pdf("sub_s1_2026-03", authorization=_bearer("u_owner"), db=db)

    assert response.media_type == "application/pdf"
    assert response.body.startswith(b"%PDF")
    assert response.headers["content-disposition"] == 'attachment; filename="sub_s1_2026-03.pdf"'


def test_invoice_pdf_for_other_client_is_403(seed, db, run_service):
    _seed_tenant_with_due_subscription(seed)
    seed.client("c2")
    seed.member("u_client", role="client", client_id="c2")
    run_service.run_for_tenant("t1")

    with pytest.raises(HTTPException) as exc_info:
        download_invoice_pdf("sub_s1_2026-03", authorization=_bearer("u_client"), db=db)
    assert exc_info.value.status_code == 403


def test_missing_invoice_pdf_is_404(seed, db):
    seed.tenant()
    seed.member("u_owner")

    with pytest.raises(HTTPException) as exc_info:
        download_invoice_pdf("sub_missing_2026-03", authorization=_bearer("u_owner"), db=db)
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize(
    ("x_cron_secret", "authorization"),
    [("sécret", None), (None, "Bearer sécret")],
)
def test_cron_rejects_non_ascii_secret(run_service, x_cron_secret, authorization):
    with pytest.raises(HTTPException) as exc_info:
        cron_generate_invoices(
            tenant_id=None, x_cron_secret=x_cron_secret, authorization=authorization, service=run_service
        )
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == {"error": "Unauthorized"}


def test_admin_generate_with_malformed_token_is_401(seed, db, run_service):
    seed.tenant()
    seed.member("u_owner", profile_tenant=True)
    header, payload, _ = create_id_token("u_owner", secret="test-secret").split(".")

    with pytest.raises(HTTPException) as exc_info:
        admin_generate_invoices(
            payload=None, authorization=f"Bearer {header}.{payload}.sïgnature", db=db, service=run_service
        )
    assert exc_info.value.status_code == 401
