from __future__ import annotations

import uuid
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
SOME_ID = str(uuid.uuid4())

PROTECTED_ROUTES = [
    ("GET", "/api/auth/user"),
    ("GET", "/api/organizations/current"),
    ("GET", "/api/dashboard/stats"),
    ("GET", "/api/clients"),
    ("POST", "/api/clients"),
    ("GET", f"/api/clients/{SOME_ID}"),
    ("PATCH", f"/api/clients/{SOME_ID}"),
    ("DELETE", f"/api/clients/{SOME_ID}"),
    ("GET", "/api/contacts"),
    ("POST", "/api/contacts"),
    ("PATCH", f"/api/contacts/{SOME_ID}"),
    ("DELETE", f"/api/contacts/{SOME_ID}"),
    ("GET", "/api/deals"),
    ("POST", "/api/deals"),
    ("PATCH", f"/api/deals/{SOME_ID}"),
    ("GET", "/api/proposals"),
    ("POST", "/api/proposals"),
    ("POST", f"/api/proposals/{SOME_ID}/send"),
    ("GET", "/api/contracts"),
    ("POST", "/api/contracts"),
    ("POST", f"/api/contracts/{SOME_ID}/send"),
    ("POST", f"/api/contracts/{SOME_ID}/sign"),
    ("GET", "/api/engagements"),
    ("POST", "/api/engagements"),
    ("DELETE", f"/api/engagements/{SOME_ID}"),
    ("GET", "/api/projects"),
    ("POST", "/api/projects"),
    ("PATCH", f"/api/projects/{SOME_ID}"),
    ("GET", "/api/tasks"),
    ("POST", "/api/tasks"),
    ("PATCH", f"/api/tasks/{SOME_ID}"),
    ("DELETE", f"/api/tasks/{SOME_ID}"),
    ("GET", "/api/threads"),
    ("POST", "/api/threads"),
    ("GET", f"/api/threads/{SOME_ID}"),
    ("GET", f"/api/threads/{SOME_ID}/messages"),
    ("POST", f"/api/threads/{SOME_ID}/messages"),
    ("GET", "/api/invoices"),
    ("POST", "/api/invoices"),
    ("POST", f"/api/invoices/{SOME_ID}/send"),
    ("POST", f"/api/invoices/{SOME_ID}/mark-paid"),
    ("GET", "/api/vendors"),
    ("POST", "/api/vendors"),
    ("GET", "/api/bills"),
    ("POST", "/api/bills"),
    ("POST", f"/api/bills/{SOME_ID}/approve"),
    ("POST", f"/api/bills/{SOME_ID}/reject"),
    ("POST", f"/api/bills/{SOME_ID}/mark-paid"),
]

# resource -> (collection path, PATCH payload or None when the resource has no PATCH/DELETE)
SCOPED_RESOURCES = {
    "client": ("/api/clients", {"name": "Hijacked"}),
    "contact": ("/api/contacts", {"first_name": "Hijacked"}),
    "deal": ("/api/deals", {"name": "Hijacked"}),
    "proposal": ("/api/proposals", {"name": "Hijacked"}),
    "contract": ("/api/contracts", {"name": "Hijacked"}),
    "engagement": ("/api/engagements", {"name": "Hijacked"}),
    "project": ("/api/projects", {"name": "Hijacked"}),
    "task": ("/api/tasks", {"name": "Hijacked"}),
    "invoice": ("/api/invoices", {"notes": "Hijacked"}),
    "bill": ("/api/bills", {"notes": "Hijacked"}),
    "thread": ("/api/threads", None),
}

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


def _post(client: TestClient, path: str, payload: dict) -> str:
    response = client.post(path, json=payload, headers=ALICE)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _seed_alice(client: TestClient) -> dict[str, str]:
    ids: dict[str, str] = {}
    ids["client"] = _post(client, "/api/clients", {"name": "Acme"})
    ids["contact"] = _post(client, "/api/contacts", {"client_company_id": ids["client"], "first_name": "Ada", "last_name": "Lane"})
    ids["deal"] = _post(client, "/api/deals", {"client_company_id": ids["client"], "name": "Website"})
    ids["proposal"] = _post(client, "/api/proposals", {"deal_id": ids["deal"], "name": "Website Proposal"})
    ids["contract"] = _post(client, "/api/contracts", {"deal_id": ids["deal"], "name": "Website MSA"})
    ids["engagement"] = _post(client, "/api/engagements", {"client_company_id": ids["client"], "name": "Website Build"})
    ids["project"] = _post(client, "/api/projects", {"engagement_id": ids["engagement"], "name": "Phase 1"})
    ids["task"] = _post(client, "/api/tasks", {"project_id": ids["project"], "name": "Wireframes"})
    ids["thread"] = _post(client, "/api/threads", {"engagement_id": ids["engagement"], "subject": "Kickoff"})
    ids["invoice"] = _post(client, "/api/invoices", {"engagement_id": ids["engagement"], "amount": "500.00"})
    vendor_id = _post(client, "/api/vendors", {"name": "Print Shop"})
    ids["bill"] = _post(client, "/api/bills", {"vendor_id": vendor_id, "amount": "80.00"})
    return ids


@pytest.mark.parametrize(("method", "path"), PROTECTED_ROUTES)
def test_protected_route_requires_authentication(client: TestClient, method: str, path: str) -> None:
    kwargs = {"json": {}} if method in {"POST", "PATCH"} else {}
    response = client.request(method, path, **kwargs)
    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "unauthenticated"
    assert set(body) == {"code", "message", "details", "correlation_id"}


@pytest.mark.parametrize("resource", sorted(SCOPED_RESOURCES))
def test_other_tenant_sees_every_resource_as_missing(client: TestClient, resource: str) -> None:
    ids = _seed_alice(client)
    collection, patch_payload = SCOPED_RESOURCES[resource]
    item_path = f"{collection}/{ids[resource]}"
    before = client.get(item_path, headers=ALICE).json() if resource != "task" else None

    listed = client.get(collection, headers=BOB)
    assert listed.status_code == 200
    assert listed.json() == []

    if resource != "task":
        assert client.get(item_path, headers=BOB).status_code == 404
    if patch_payload is not None:
        patched = client.patch(item_path, json=patch_payload, headers=BOB)
        assert patched.status_code == 404
        deleted = client.delete(item_path, headers=BOB)
        assert deleted.status_code == 404
    else:
        assert client.get(f"{item_path}/messages", headers=BOB).status_code == 404
        assert client.post(f"{item_path}/messages", json={"content": "hi"}, headers=BOB).status_code == 404

    owned = client.get(collection, headers=ALICE).json()
    survivor = next(item for item in owned if item["id"] == ids[resource])
    if before is not None:
        assert survivor == before
    if patch_payload is not None:
        for field, value in patch_payload.items():
            assert survivor[field] != value
