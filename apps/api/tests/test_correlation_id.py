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



def test_correlation_id_is_generated_when_missing(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    generated = response.headers["x-correlation-id"]
    assert uuid.UUID(generated)

    again = client.get("/health")
    assert again.headers["x-correlation-id"] != generated


def test_correlation_id_is_echoed(client: TestClient) -> None:
    response = client.get("/api/clients", headers={"x-user-id": "corr-user", "X-Correlation-Id": "trace-42"})
    assert response.status_code == 200
    assert response.headers["x-correlation-id"] == "trace-42"


def test_error_body_carries_request_correlation_id(client: TestClient) -> None:
    unauthenticated = client.get("/api/clients", headers={"X-Correlation-Id": "trace-401"})
    assert unauthenticated.status_code == 401
    assert unauthenticated.json()["correlation_id"] == "trace-401"

    missing = client.get(f"/api/deals/{uuid.uuid4()}", headers={"x-user-id": "corr-user"})
    assert missing.status_code == 404
    assert missing.json()["correlation_id"] == missing.headers["x-correlation-id"]

    invalid = client.post("/api/clients", json={}, headers={"x-user-id": "corr-user", "X-Correlation-Id": "trace-422"})
    assert invalid.status_code == 422
    assert invalid.headers["x-correlation-id"] == "trace-422"


def test_oversized_correlation_id_is_truncated(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Correlation-Id": "x" * 300})
    assert response.headers["x-correlation-id"] == "x" * 128
