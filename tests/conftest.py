import logging
import os
from typing import Any, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before the app builds its engine
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "PAYPAL_ENV": "sandbox",
        "PRODUCTION_MODE": "false",
    }
)

from paypal_webhooks.core.config import Settings, get_settings
from paypal_webhooks.db.models import Base
from paypal_webhooks.main import (
    app,
    db_session,
    get_notifier,
    get_order_store,
    get_verifier,
)
from paypal_webhooks.services.collaborators import OrderStatus

logger = logging.getLogger(__name__)

SANDBOX_BASE = "https://api.sandbox.paypal.com/v1"


class FakeOrderStore:
    """Keeps order state in memory and records every upsert."""

    def __init__(self):
        self.orders: dict[str, tuple[OrderStatus, str | None]] = {}
        self.calls: list[tuple[str, OrderStatus, dict]] = []

    def upsert_order_status(
        self, order_id: str, status: OrderStatus, metadata: dict[str, Any]
    ) -> bool:
        self.calls.append((order_id, status, metadata))
        new = (status, metadata.get("transaction_id"))
        if self.orders.get(order_id) == new:
            return False
        self.orders[order_id] = new
        return True

    def status_of(self, order_id: str) -> OrderStatus | None:
        entry = self.orders.get(order_id)
        return entry[0] if entry else None


class FakeNotifier:
    def __init__(self):
        self.sent: list[tuple[str, dict]] = []

    def send_confirmation(self, order_id: str, details: dict[str, Any]) -> None:
        self.sent.append((order_id, details))


class StubVerifier:
    def __init__(self, result: bool = True, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls = []

    async def verify(self, headers, event, webhook_id) -> bool:
        self.calls.append((dict(headers), event, webhook_id))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    session = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        paypal_client_id="client-id",
        paypal_client_secret="client-secret",
        paypal_webhook_id="8PT597110X687430LKGECATA",
        paypal_env="sandbox",
        production_mode=False,
        database_url="sqlite://",
    )


@pytest.fixture
def order_store() -> FakeOrderStore:
    return FakeOrderStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def use_verifier():
    """Install a StubVerifier on the app and return it."""

    def install(result: bool = True, error: Exception | None = None) -> StubVerifier:
        stub = StubVerifier(result, error)
        app.dependency_overrides[get_verifier] = lambda: stub
        return stub

    return install


@pytest.fixture
def app_overrides(db, settings, order_store, notifier):
    app.dependency_overrides[db_session] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_order_store] = lambda: order_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_overrides) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app_overrides):
    """Client that shares the test's event loop, for concurrency checks."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def signature_headers() -> dict[str, str]:
    return {
        "paypal-auth-algo": "SHA256withRSA",
        "paypal-cert-url": f"{SANDBOX_BASE}/notifications/certs/CERT-360caa42-fca2a376-5c5e4bd7",
        "paypal-transmission-id": "69cd13f0-d67a-11e5-baa3-778b53f4ae55",
        "paypal-transmission-sig": "lmI95Jx3Y9nhR5SJWlHVIWpg4AgFk7n9bCHSRxbrd8A9zrhdu2rMyFrmz+Zjh3s3boXB07VXCXUZy/UFzUlnGJn0wDugt7FlSvdKeIJenLRemUxYCPVoEZzg9VFNqOa48gMkvF==",
        "paypal-transmission-time": "2026-10-18T09:00:00Z",
    }


@pytest.fixture
def capture_event():
    """Build a PAYMENT.CAPTURE.* event body."""

    def build(
        event_type: str = "PAYMENT.CAPTURE.COMPLETED",
        event_id: str | None = "WH-1",
        transaction_id: str = "TX-1",
        order_id: str | None = "ORD-1",
        **resource_fields,
    ) -> dict:
        resource = {
            "id": transaction_id,
            "status": "COMPLETED",
            "amount": {"value": "0.05", "currency_code": "USD"},
        }
        if order_id is not None:
            resource["supplementary_data"] = {"related_ids": {"order_id": order_id}}
        resource.update(resource_fields)
        event = {"event_type": event_type, "resource": resource}
        if event_id is not None:
            event["id"] = event_id
        return event

    return build
