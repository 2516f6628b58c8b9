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
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
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



def test_metrics_endpoint_exposes_http_and_tenancy_metrics(client: TestClient) -> None:
    assert client.get("/health").status_code == 200
    assert client.get("/api/clients").status_code == 401

    created = client.post("/api/clients", json={"name": "Metrics Client"}, headers={"x-user-id": "metrics-user"})
    assert created.status_code == 201
    missing = client.get(f"/api/clients/{uuid.uuid4()}", headers={"x-user-id": "metrics-user"})
    assert missing.status_code == 404

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert metrics.headers["content-type"].startswith("text/plain")
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "tenancy_organizations_created_total" in body
    assert 'tenancy_scoped_misses_total{resource="crm.client"}' in body
    assert 'auth_failures_total{reason="missing_credentials"}' in body

    assert 'path="/health"' in body
    assert 'path="/api/clients/{id}"' in body
    assert str(created.json()["id"]) not in body


def test_metrics_endpoint_is_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    response = client.get("/metrics")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"
