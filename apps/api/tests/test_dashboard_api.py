from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ubos.core.config import get_settings
from ubos.core.database import Base, get_db
from ubos.main import app
from ubos.middleware.rate_limit import reset_rate_limiter


ALICE = {"x-user-id": "alice"}
BOB = {"x-user-id": "bob"}


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def setup_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()



def _engagement(client: TestClient, headers: dict[str, str], status: str = "active") -> str:
    response = client.post("/api/engagements", json={"name": "Work", "status": status}, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


def test_dashboard_starts_empty(client: TestClient) -> None:
    response = client.get("/api/dashboard/stats", headers=ALICE)
    assert response.status_code == 200
    assert response.json() == {
        "clients": 0,
        "deals": 0,
        "engagements": 0,
        "pending_invoices": 0,
        "total_revenue": "0.00",
    }


def test_dashboard_counts_only_callers_organization(client: TestClient) -> None:
    client.post("/api/clients", json={"name": "Acme"}, headers=ALICE)
    client.post("/api/clients", json={"name": "Globex"}, headers=ALICE)
    client.post("/api/clients", json={"name": "Bob Co"}, headers=BOB)

    client.post("/api/deals", json={"name": "Open deal", "stage": "negotiation"}, headers=ALICE)
    client.post("/api/deals", json={"name": "Won deal", "stage": "won"}, headers=ALICE)
    client.post("/api/deals", json={"name": "Lost deal", "stage": "lost"}, headers=ALICE)

    active = _engagement(client, ALICE)
    _engagement(client, ALICE, status="completed")
    bob_engagement = _engagement(client, BOB)

    pending = client.post("/api/invoices", json={"engagement_id": active, "amount": "100.00"}, headers=ALICE).json()
    client.post(f"/api/invoices/{pending['id']}/send", headers=ALICE)

    paid = client.post(
        "/api/invoices",
        json={"engagement_id": active, "amount": "1000.00", "tax": "50.50"},
        headers=ALICE,
    ).json()
    client.post(f"/api/invoices/{paid['id']}/mark-paid", headers=ALICE)

    bob_paid = client.post("/api/invoices", json={"engagement_id": bob_engagement, "amount": "999.00"}, headers=BOB).json()
    client.post(f"/api/invoices/{bob_paid['id']}/mark-paid", headers=BOB)

    stats = client.get("/api/dashboard/stats", headers=ALICE)
    assert stats.status_code == 200
    assert stats.json() == {
        "clients": 2,
        "deals": 1,
        "engagements": 1,
        "pending_invoices": 1,
        "total_revenue": "1050.50",
    }


def test_dashboard_requires_authentication(client: TestClient) -> None:
    assert client.get("/api/dashboard/stats").status_code == 401
