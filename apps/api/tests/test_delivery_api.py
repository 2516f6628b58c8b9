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


def _create_engagement(client: TestClient, headers: dict[str, str] = ALICE, name: str = "Retainer") -> dict:
    response = client.post("/api/engagements", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


def _create_project(client: TestClient, engagement_id: str, name: str) -> dict:
    response = client.post("/api/projects", json={"engagement_id": engagement_id, "name": name}, headers=ALICE)
    assert response.status_code == 201
    return response.json()


def test_engagement_crud(client: TestClient) -> None:
    engagement = _create_engagement(client)
    assert engagement["owner_id"] == "alice"
    assert engagement["status"] == "active"

    updated = client.patch(f"/api/engagements/{engagement['id']}", json={"status": "on_hold"}, headers=ALICE)
    assert updated.status_code == 200
    assert updated.json()["status"] == "on_hold"

    assert client.get(f"/api/engagements/{engagement['id']}", headers=BOB).status_code == 404
    assert client.delete(f"/api/engagements/{engagement['id']}", headers=BOB).status_code == 404
    assert client.delete(f"/api/engagements/{engagement['id']}", headers=ALICE).status_code == 204
    assert client.get(f"/api/engagements/{engagement['id']}", headers=ALICE).status_code == 404


def test_project_requires_engagement_in_same_organization(client: TestClient) -> None:
    foreign = _create_engagement(client, BOB, "Bob's engagement")
    response = client.post("/api/projects", json={"engagement_id": foreign["id"], "name": "Sneaky"}, headers=ALICE)
    assert response.status_code == 422
    assert response.json()["message"] == "unknown engagement_id"

    missing = client.post("/api/projects", json={"engagement_id": str(uuid.uuid4()), "name": "Ghost"}, headers=ALICE)
    assert missing.status_code == 422


def test_tasks_filter_by_project(client: TestClient) -> None:
    engagement = _create_engagement(client)
    design = _create_project(client, engagement["id"], "Design")
    build = _create_project(client, engagement["id"], "Build")

    for name, order in (("Wireframes", 2), ("Moodboard", 1)):
        created = client.post(
            "/api/tasks",
            json={"project_id": design["id"], "name": name, "sort_order": order},
            headers=ALICE,
        )
        assert created.status_code == 201
    assert client.post("/api/tasks", json={"project_id": build["id"], "name": "Scaffold"}, headers=ALICE).status_code == 201

    design_tasks = client.get("/api/tasks", params={"project_id": design["id"]}, headers=ALICE)
    assert design_tasks.status_code == 200
    assert [task["name"] for task in design_tasks.json()] == ["Moodboard", "Wireframes"]

    all_tasks = client.get("/api/tasks", headers=ALICE)
    assert len(all_tasks.json()) == 3
    assert client.get("/api/tasks", headers=BOB).json() == []


def test_task_patch_and_delete_are_scoped(client: TestClient) -> None:
    engagement = _create_engagement(client)
    project = _create_project(client, engagement["id"], "Launch")
    task = client.post("/api/tasks", json={"project_id": project["id"], "name": "Go live"}, headers=ALICE).json()

    assert client.patch(f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=BOB).status_code == 404
    done = client.patch(f"/api/tasks/{task['id']}", json={"status": "completed", "priority": "high"}, headers=ALICE)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"
    assert done.json()["priority"] == "high"

    assert client.delete(f"/api/tasks/{task['id']}", headers=BOB).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=ALICE).status_code == 204


def test_deleting_project_removes_its_tasks(client: TestClient) -> None:
    engagement = _create_engagement(client)
    project = _create_project(client, engagement["id"], "Throwaway")
    client.post("/api/tasks", json={"project_id": project["id"], "name": "Orphan?"}, headers=ALICE)

    assert client.delete(f"/api/projects/{project['id']}", headers=ALICE).status_code == 204
    assert client.get("/api/tasks", headers=ALICE).json() == []


def test_posting_message_bumps_thread(client: TestClient) -> None:
    engagement = _create_engagement(client)
    quiet = client.post(
        "/api/threads",
        json={"engagement_id": engagement["id"], "subject": "Quiet"},
        headers=ALICE,
    ).json()
    busy = client.post(
        "/api/threads",
        json={"engagement_id": engagement["id"], "subject": "Kickoff", "type": "client"},
        headers=ALICE,
    )
    assert busy.status_code == 201
    assert busy.json()["last_message_at"] is None
    assert busy.json()["created_by_id"] == "alice"

    message = client.post(f"/api/threads/{busy.json()['id']}/messages", json={"content": "Hello"}, headers=ALICE)
    assert message.status_code == 201
    assert message.json()["sender_id"] == "alice"
    assert message.json()["thread_id"] == busy.json()["id"]

    thread = client.get(f"/api/threads/{busy.json()['id']}", headers=ALICE).json()
    assert thread["last_message_at"] is not None

    listed = client.get("/api/threads", headers=ALICE).json()
    assert [item["id"] for item in listed] == [busy.json()["id"], quiet["id"]]

    messages = client.get(f"/api/threads/{busy.json()['id']}/messages", headers=ALICE).json()
    assert [item["content"] for item in messages] == ["Hello"]


def test_threads_are_hidden_from_other_tenants(client: TestClient) -> None:
    engagement = _create_engagement(client)
    thread = client.post(
        "/api/threads",
        json={"engagement_id": engagement["id"], "subject": "Private"},
        headers=ALICE,
    ).json()

    assert client.get(f"/api/threads/{thread['id']}", headers=BOB).status_code == 404
    assert client.get(f"/api/threads/{thread['id']}/messages", headers=BOB).status_code == 404
    posted = client.post(f"/api/threads/{thread['id']}/messages", json={"content": "Hi"}, headers=BOB)
    assert posted.status_code == 404
    assert client.get(f"/api/threads/{thread['id']}/messages", headers=ALICE).json() == []


def test_thread_for_foreign_engagement_is_rejected(client: TestClient) -> None:
    foreign = _create_engagement(client, BOB, "Bob's")
    response = client.post("/api/threads", json={"engagement_id": foreign["id"], "subject": "Nope"}, headers=ALICE)
    assert response.status_code == 422
