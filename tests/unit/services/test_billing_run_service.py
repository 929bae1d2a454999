from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func, select

from billing_portal.models import Invoice, Subscription
from billing_portal.services.billing_run_service import BillingRunService
from billing_portal.services.invoice_generation import InvoiceGenerator
from billing_portal.services.notification_service import NotificationDispatcher


def _service(factory, transport, config, generator=None, dispatcher=None) -> BillingRunService:
    dispatcher = dispatcher or NotificationDispatcher(factory, transport, config=config)
    return BillingRunService(factory, dispatcher, generator=generator, config=config)


def _invoice_ids(factory) -> list[str]:
    with factory() as session:
        return list(session.scalars(select(Invoice.id).order_by(Invoice.id)).all())


class _PausingGenerator(InvoiceGenerator):
    """Pauses the subscription after the scan picked it up."""

    def generate(self, tenant_id, subscription_id, now=None):
        with self.session_factory() as session, session.begin():
            session.get(Subscription, subscription_id).status = "paused"
        return super().generate(tenant_id, subscription_id, now=now)


class _BrokenDispatcher(NotificationDispatcher):
    def __init__(self, factory, transport, config, broken_tenant):
        super().__init__(factory, transport, config=config)
        self.broken_tenant = broken_tenant

    def notify_clients(self, tenant_id, batches):
        if tenant_id == self.broken_tenant:
            raise RuntimeError("mail relay down")
        return super().notify_clients(tenant_id, batches)


def test_tenant_run_bills_due_subscription_and_emails_client(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email="billing@client.example", name="Client One")
    seed.subscription("s1", next_billing_date=now - timedelta(days=1))
    seed.subscription("s2", next_billing_date=now - timedelta(days=1), status="paused")
    seed.subscription("s3", next_billing_date=now + timedelta(days=5))

    result = _service(session_factory, transport, test_config).run_for_tenant("t1", now=now)

    assert result.due_count == 1
    assert result.generated_count == 1
    assert result.skipped_count == 0
    assert result.errors_count == 0
    assert _invoice_ids(session_factory) == ["sub_s1_2026-03"]
    with session_factory() as session:
        assert session.get(Subscription, "s1").next_billing_date == datetime(2026, 4, 14, 9, 30)
        paused = session.get(Subscription, "s2")
        assert paused.next_billing_date == now - timedelta(days=1)
        assert paused.status == "paused"
        assert session.get(Invoice, "sub_s1_2026-03").due_date == now + timedelta(days=7)
    assert result.email.attempted is True
    assert result.email.sent_count == 1
    assert result.email.failed_count == 0
    assert len(transport.sent) == 1
    message = transport.sent[0]
    assert message.to == "billing@client.example"
    assert message.subject == "New invoice(s) available - Acme Studio"
    assert "SUB-2026-03" in message.text_body
    assert "https://portal.example.com/api/v1/invoices/sub_s1_2026-03/pdf" in message.text_body
    assert "Due: 3/22/2026" in message.text_body


def test_second_run_is_a_noop(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email="billing@client.example")
    seed.subscription("s1")
    service = _service(session_factory, transport, test_config)

    service.run_for_tenant("t1", now=now)
    second = service.run_for_tenant("t1", now=now)

    assert second.due_count == 0
    assert second.generated_count == 0
    assert second.email.attempted is False
    assert _invoice_ids(session_factory) == ["sub_s1_2026-03"]
    assert len(transport.sent) == 1


def test_invoices_for_one_client_share_one_email(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email="billing@client.example")
    seed.subscription("s1", next_billing_date=datetime(2026, 3, 1))
    seed.subscription("s2", next_billing_date=datetime(2026, 3, 10), name="Hosting")

    result = _service(session_factory, transport, test_config).run_for_tenant("t1", now=now)

    assert result.generated_count == 2
    assert len(result.created_invoices["c1"]) == 2
    assert len(transport.sent) == 1
    assert result.email.sent_count == 1


def test_invalid_subscription_is_isolated(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email="billing@client.example")
    seed.subscription("s_bad", interval="weekly")
    seed.subscription("s_good")

    result = _service(session_factory, transport, test_config).run_for_tenant("t1", now=now)

    assert result.due_count == 2
    assert result.generated_count == 1
    assert result.errors_count == 1
    assert result.errors[0].subscription_id == "s_bad"
    assert result.errors[0].message == "Invalid interval: weekly"
    assert result.errors[0].code == "invalid-subscription"
    assert _invoice_ids(session_factory) == ["sub_s_good_2026-03"]


def test_missing_client_email_does_not_undo_generation(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email=None)
    seed.subscription("s1")

    result = _service(session_factory, transport, test_config).run_for_tenant("t1", now=now)

    assert result.generated_count == 1
    assert result.email.attempted is True
    assert result.email.sent_count == 0
    assert result.email.failed_count == 1
    assert result.email.details[0].error == "Client email missing"
    assert _invoice_ids(session_factory) == ["sub_s1_2026-03"]


def test_delivery_failure_for_one_client_spares_the_others(
    session_factory, seed, failing_transport, test_config, now
):
    transport = failing_transport("bounce@client.example")
    seed.tenant()
    seed.client("c1", email="bounce@client.example")
    seed.client("c2", email="ok@client.example")
    seed.subscription("s1", client_id="c1")
    seed.subscription("s2", client_id="c2")

    result = _service(session_factory, transport, test_config).run_for_tenant("t1", now=now)

    assert result.generated_count == 2
    assert result.email.sent_count == 1
    assert result.email.failed_count == 1
    failed = next(detail for detail in result.email.details if not detail.sent)
    assert failed.client_id == "c1"
    assert failed.code == 550


def test_subscription_paused_after_scan_counts_as_due_only(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.client("c1", email="billing@client.example")
    seed.subscription("s1")

    generator = _PausingGenerator(session_factory)
    result = _service(session_factory, transport, test_config, generator=generator).run_for_tenant("t1", now=now)

    assert result.due_count == 1
    assert result.generated_count == 0
    assert result.skipped_count == 0
    assert result.errors_count == 0
    assert _invoice_ids(session_factory) == []
    assert transport.sent == []


def test_sweep_isolates_tenant_failures(session_factory, seed, transport, test_config, now):
    for tenant_id in ("t1", "t2"):
        seed.tenant(tenant_id, name=tenant_id.upper())
        seed.client(f"c_{tenant_id}", tenant_id=tenant_id, email=f"{tenant_id}@client.example")
        seed.subscription(f"s_{tenant_id}", tenant_id=tenant_id, client_id=f"c_{tenant_id}")

    dispatcher = _BrokenDispatcher(session_factory, transport, test_config, broken_tenant="t1")
    report = _service(session_factory, transport, test_config, dispatcher=dispatcher).run_for_all_tenants(now=now)

    assert report.tenant_count == 2
    assert report.ran_at == now
    by_tenant = {summary.tenant_id: summary for summary in report.results}
    assert by_tenant["t1"].error == "mail relay down"
    assert by_tenant["t1"].errors_count == 1
    assert by_tenant["t2"].error is None
    assert by_tenant["t2"].generated_count == 1
    assert report.total_generated == 1
    assert report.total_errors == 1
    # t1's invoice was committed before its notification step failed.
    assert _invoice_ids(session_factory) == ["sub_s_t1_2026-03", "sub_s_t2_2026-03"]


def test_scheduled_single_tenant_run_carries_detail(session_factory, seed, transport, test_config, now):
    seed.tenant()
    seed.tenant("t2")
    seed.client("c1", email="billing@client.example")
    seed.subscription("s1")

    report = _service(session_factory, transport, test_config).run_scheduled("t1", now=now)

    assert report.tenant_count == 1
    assert report.total_generated == 1
    assert report.detail is not None
    assert report.detail.tenant_id == "t1"
    assert [summary.tenant_id for summary in report.results] == ["t1"]


def test_scheduled_run_without_tenant_sweeps_everything(session_factory, seed, transport, test_config, now):
    seed.tenant("t1")
    seed.tenant("t2")

    report = _service(session_factory, transport, test_config).run_scheduled(None, now=now)

    assert report.tenant_count == 2
    assert report.detail is None
    assert report.total_generated == 0
