from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ubos.core.config import get_settings
from ubos.core.database import Base, get_db
from ubos.main import app
from ubos.middleware.rate_limit import reset_rate_limiter
from ubos.platform.tenancy.context import OrgContext
from ubos.revenue import tasks
from ubos.revenue.models import Invoice
from ubos.revenue.service import revenue_service


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



PAST_DUE = "2020-01-01T00:00:00Z"
FUTURE_DUE = "2099-01-01T00:00:00Z"


def _org_context(client: TestClient, headers: dict[str, str]) -> OrgContext:
    current = client.get("/api/organizations/current", headers=headers).json()
    return OrgContext(
        organization_id=uuid.UUID(current["organization"]["id"]),
        user_id=headers["x-user-id"],
        role=current["role"],
    )


def _sent_invoice(client: TestClient, headers: dict[str, str], due_date: str) -> str:
    engagement = client.post("/api/engagements", json={"name": "Retainer"}, headers=headers).json()
    invoice = client.post(
        "/api/invoices",
        json={"engagement_id": engagement["id"], "amount": "500.00", "due_date": due_date},
        headers=headers,
    ).json()
    assert client.post(f"/api/invoices/{invoice['id']}/send", headers=headers).status_code == 200
    return invoice["id"]


def _status(db_session: Session, invoice_id: str) -> str:
    row = db_session.get(Invoice, uuid.UUID(invoice_id))
    assert row is not None
    db_session.refresh(row)
    return row.status


def test_sweep_for_one_organization_never_touches_another(client: TestClient, db_session: Session) -> None:
    alice_invoice = _sent_invoice(client, ALICE, PAST_DUE)
    bob_invoice = _sent_invoice(client, BOB, PAST_DUE)

    changed = revenue_service.refresh_overdue(db_session, _org_context(client, ALICE))

    assert changed == 1
    assert _status(db_session, alice_invoice) == "overdue"
    assert _status(db_session, bob_invoice) == "sent"


def test_sweep_skips_drafts_paid_and_future_invoices(client: TestClient, db_session: Session) -> None:
    future = _sent_invoice(client, ALICE, FUTURE_DUE)
    paid = _sent_invoice(client, ALICE, PAST_DUE)
    assert client.post(f"/api/invoices/{paid}/mark-paid", headers=ALICE).status_code == 200

    engagement = client.post("/api/engagements", json={"name": "Drafts"}, headers=ALICE).json()
    draft = client.post(
        "/api/invoices",
        json={"engagement_id": engagement["id"], "amount": "10.00", "due_date": PAST_DUE},
        headers=ALICE,
    ).json()["id"]

    changed = revenue_service.refresh_overdue(
        db_session,
        _org_context(client, ALICE),
        now=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )

    assert changed == 0
    assert _status(db_session, future) == "sent"
    assert _status(db_session, paid) == "paid"
    assert _status(db_session, draft) == "draft"


def test_overdue_invoice_can_still_be_paid(client: TestClient, db_session: Session) -> None:
    invoice_id = _sent_invoice(client, ALICE, PAST_DUE)
    revenue_service.refresh_overdue(db_session, _org_context(client, ALICE))

    paid = client.post(f"/api/invoices/{invoice_id}/mark-paid", headers=ALICE)
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"


def test_background_task_sweeps_every_organization(
    client: TestClient,
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    alice_invoice = _sent_invoice(client, ALICE, PAST_DUE)
    bob_invoice = _sent_invoice(client, BOB, PAST_DUE)
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=db_session.get_bind()))

    assert tasks.refresh_overdue_invoices_task.run() == 2
    assert _status(db_session, alice_invoice) == "overdue"
    assert _status(db_session, bob_invoice) == "overdue"


def test_background_task_respects_disable_flag(
    client: TestClient,
    db_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    invoice_id = _sent_invoice(client, ALICE, PAST_DUE)
    monkeypatch.setattr(tasks, "SessionLocal", sessionmaker(bind=db_session.get_bind()))
    monkeypatch.setenv("OVERDUE_SWEEP_ENABLED", "false")
    get_settings.cache_clear()

    assert tasks.run_overdue_sweep() == 0
    assert _status(db_session, invoice_id) == "sent"
