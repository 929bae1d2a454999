from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from billing_portal.core.config import get_config
from billing_portal.core.exceptions import NotificationError
from billing_portal.models import Base, Client, Subscription, Tenant, TenantMembership, User
from billing_portal.services.email_sender import SendReceipt


class FakeTransport:
    """In-memory stand-in for the SMTP sender."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.sent = []
        self.failing = failing or set()

    def send(self, message):
        if message.to in self.failing:
            raise NotificationError("550 mailbox unavailable", code=550, response="mailbox unavailable")
        self.sent.append(message)
        return SendReceipt(message_id=f"<{len(self.sent)}@test>", accepted=[message.to])


class Seeder:
    """Row builders for a tenant-scoped billing dataset."""

    def __init__(self, factory, now: datetime) -> None:
        self.factory = factory
        self.now = now

    def tenant(self, tenant_id: str = "t1", name: str | None = "Acme Studio") -> None:
        with self.factory() as session, session.begin():
            session.add(Tenant(id=tenant_id, name=name))

    def client(self, client_id: str, tenant_id: str = "t1", email: str | None = None, name: str | None = None) -> None:
        with self.factory() as session, session.begin():
            session.add(Client(id=client_id, tenant_id=tenant_id, email=email, name=name or client_id.title()))

    def subscription(
        self,
        subscription_id: str,
        tenant_id: str = "t1",
        client_id: str | None = "c1",
        next_billing_date: datetime | None = None,
        status: str = "active",
        interval: str | None = "monthly",
        price: Decimal | None = Decimal("100.00"),
        currency: str | None = "USD",
        name: str | None = "Retainer",
    ) -> None:
        with self.factory() as session, session.begin():
            session.add(
                Subscription(
                    id=subscription_id,
                    tenant_id=tenant_id,
                    client_id=client_id,
                    name=name,
                    price=price,
                    currency=currency,
                    interval=interval,
                    status=status,
                    start_date=self.now - timedelta(days=60),
                    next_billing_date=next_billing_date or self.now - timedelta(days=1),
                )
            )

    def member(
        self,
        user_id: str,
        tenant_id: str = "t1",
        role: str = "owner",
        status: str = "active",
        email: str | None = None,
        client_id: str | None = None,
        profile_tenant: bool = False,
    ) -> None:
        with self.factory() as session, session.begin():
            session.add(
                User(
                    id=user_id,
                    email=email,
                    tenant_id=tenant_id if profile_tenant else None,
                    role=role if profile_tenant else None,
                )
            )
            session.add(
                TenantMembership(
                    id=TenantMembership.membership_id(user_id, tenant_id),
                    user_id=user_id,
                    tenant_id=tenant_id,
                    role=role,
                    status=status,
                    client_id=client_id,
                )
            )


@pytest.fixture
def now():
    return datetime(2026, 3, 15, 9, 30)


@pytest.fixture
def test_config():
    return replace(
        get_config(),
        SMTP_SANDBOX_MODE=True,
        CRON_SECRET="cron-secret",
        JWT_SECRET="test-secret",
        PORTAL_BASE_URL="https://portal.example.com",
        INVOICE_DUE_DAYS=7,
        TEST_EMAIL_COOLDOWN_SECONDS=300,
        DEFAULT_CURRENCY="USD",
    )


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'billing_test.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def seed(session_factory, now):
    return Seeder(session_factory, now)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    def _build(*recipients: str) -> FakeTransport:
        return FakeTransport(failing=set(recipients))

    return _build
