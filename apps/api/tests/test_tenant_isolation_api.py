from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ubos import events
from ubos.core.config import get_settings
from ubos.core.database import Base, get_db
from ubos.crm.models import ClientCompany, Deal
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


def _create_client(client: TestClient, headers: dict[str, str], name: str) -> dict:
    response = client.post("/api/clients", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_client_list_only_shows_own_organization(client: TestClient) -> None:
    acme = _create_client(client, ALICE, "Acme")

    alice_list = client.get("/api/clients", headers=ALICE)
    assert alice_list.status_code == 200
    assert [item["id"] for item in alice_list.json()] == [acme["id"]]

    bob_list = client.get("/api/clients", headers=BOB)
    assert bob_list.status_code == 200
    assert bob_list.json() == []


def test_cross_tenant_reads_and_writes_look_like_missing_rows(client: TestClient, db_session: Session) -> None:
    acme = _create_client(client, ALICE, "Acme")
    client_id = acme["id"]

    assert client.get(f"/api/clients/{client_id}", headers=BOB).status_code == 404

    patched = client.patch(f"/api/clients/{client_id}", json={"name": "Hijacked"}, headers=BOB)
    assert patched.status_code == 404
    assert patched.json()["message"] == "client not found"

    deleted = client.delete(f"/api/clients/{client_id}", headers=BOB)
    assert deleted.status_code == 404

    row = db_session.get(ClientCompany, uuid.UUID(client_id))
    assert row is not None
    db_session.refresh(row)
    assert row.name == "Acme"


def test_cross_tenant_deal_patch_leaves_row_unchanged(client: TestClient, db_session: Session) -> None:
    created = client.post("/api/deals", json={"name": "Big Deal", "stage": "proposal"}, headers=ALICE)
    assert created.status_code == 201
    deal_id = created.json()["id"]
    assert created.json()["owner_id"] == "alice"

    response = client.patch(f"/api/deals/{deal_id}", json={"stage": "won"}, headers=BOB)
    assert response.status_code == 404

    row = db_session.scalar(select(Deal).where(Deal.id == uuid.UUID(deal_id)))
    assert row is not None
    db_session.refresh(row)
    assert row.stage == "proposal"


def test_create_ignores_client_supplied_organization_id(client: TestClient) -> None:
    foreign_org = str(uuid.uuid4())
    response = client.post("/api/clients", json={"name": "Acme", "organization_id": foreign_org}, headers=ALICE)
    assert response.status_code == 201
    assert response.json()["organization_id"] != foreign_org

    current = client.get("/api/organizations/current", headers=ALICE)
    assert current.status_code == 200
    assert response.json()["organization_id"] == current.json()["organization"]["id"]


def test_update_cannot_move_row_to_another_organization(client: TestClient) -> None:
    acme = _create_client(client, ALICE, "Acme")
    bob_org = client.get("/api/organizations/current", headers=BOB).json()["organization"]["id"]

    response = client.patch(
        f"/api/clients/{acme['id']}",
        json={"name": "Acme Ltd", "organization_id": bob_org},
        headers=ALICE,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Acme Ltd"
    assert response.json()["organization_id"] == acme["organization_id"]


def test_contact_referencing_foreign_client_is_rejected(client: TestClient) -> None:
    acme = _create_client(client, ALICE, "Acme")

    response = client.post(
        "/api/contacts",
        json={"first_name": "Eve", "last_name": "Spy", "client_company_id": acme["id"]},
        headers=BOB,
    )
    assert response.status_code == 422
    assert response.json()["message"] == "unknown client_company_id"
    assert client.get("/api/contacts", headers=BOB).json() == []


def test_deal_update_rejects_foreign_contact_reference(client: TestClient) -> None:
    foreign_contact = client.post(
        "/api/contacts",
        json={"first_name": "Ann", "last_name": "Other"},
        headers=BOB,
    ).json()
    deal = client.post("/api/deals", json={"name": "Deal"}, headers=ALICE).json()

    response = client.patch(f"/api/deals/{deal['id']}", json={"contact_id": foreign_contact["id"]}, headers=ALICE)
    assert response.status_code == 422


def test_deleting_client_cascades_to_its_contacts(client: TestClient) -> None:
    acme = _create_client(client, ALICE, "Acme")
    contact = client.post(
        "/api/contacts",
        json={"first_name": "Jane", "last_name": "Doe", "client_company_id": acme["id"]},
        headers=ALICE,
    )
    assert contact.status_code == 201

    deleted = client.delete(f"/api/clients/{acme['id']}", headers=ALICE)
    assert deleted.status_code == 204
    assert client.get(f"/api/contacts/{contact.json()['id']}", headers=ALICE).status_code == 404


def test_patch_rejects_explicit_null_for_required_field(client: TestClient) -> None:
    acme = _create_client(client, ALICE, "Acme")
    response = client.patch(f"/api/clients/{acme['id']}", json={"name": None}, headers=ALICE)
    assert response.status_code == 422


def test_deal_events_carry_organization(client: TestClient) -> None:
    created = client.post("/api/deals", json={"name": "Evented"}, headers={**ALICE, "x-correlation-id": "deal-corr-1"})
    assert created.status_code == 201

    envelopes = [item for item in events.published_events if item["entity_id"] == created.json()["id"]]
    assert envelopes
    assert envelopes[-1]["event_type"] == "deal.created"
    assert envelopes[-1]["organization_id"] == created.json()["organization_id"]
    assert envelopes[-1]["correlation_id"] == "deal-corr-1"


def test_published_event_history_is_bounded() -> None:
    organization_id = uuid.uuid4()
    last_entity = uuid.uuid4()
    for _ in range(events.PUBLISHED_EVENTS_LIMIT + 5):
        events.publish("deal.updated", organization_id=organization_id, entity_id=uuid.uuid4(), actor_id="alice")
    events.publish("deal.updated", organization_id=organization_id, entity_id=last_entity, actor_id="alice")

    assert len(events.published_events) == events.PUBLISHED_EVENTS_LIMIT
    assert events.published_events[-1]["entity_id"] == str(last_entity)
