from __future__ import annotations

import logging
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import OperationalError

from ubos.core.config import get_settings
from ubos.core.database import Base, get_db
from ubos.crm.service import CrmService
from ubos.main import app
from ubos.middleware.rate_limit import reset_rate_limiter
from ubos.revenue.service import RevenueService


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



def _raise_storage_error(*args, **kwargs):  # type: ignore[no-untyped-def]
    raise OperationalError("SELECT secret_column FROM client_companies", {}, Exception("disk I/O error"))


def test_list_storage_failure_returns_generic_500(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(CrmService, "list_clients", _raise_storage_error)
    caplog.set_level(logging.ERROR, logger="ubos.errors")

    response = client.get("/api/clients", headers={"x-user-id": "storage-user", "X-Correlation-Id": "storage-1"})
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "client_list_failed"
    assert body["message"] == "Internal server error"
    assert body["correlation_id"] == "storage-1"
    assert "secret_column" not in response.text
    assert "disk I/O" not in response.text

    records = [record for record in caplog.records if record.getMessage() == "storage.failure"]
    assert len(records) == 1
    record = records[0]
    assert record.user_id == "storage-user"
    assert record.organization_id
    assert record.resource == "crm.client"
    assert record.exc_info is not None


def test_create_storage_failure_leaves_no_row(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    headers = {"x-user-id": "storage-user"}
    engagement = client.post("/api/engagements", json={"name": "Retainer"}, headers=headers).json()
    with monkeypatch.context() as patch:
        patch.setattr(RevenueService, "create_invoice", _raise_storage_error)
        response = client.post(
            "/api/invoices",
            json={"engagement_id": engagement["id"], "amount": "100.00"},
            headers=headers,
        )
    assert response.status_code == 500
    assert response.json()["code"] == "invoice_create_failed"
    assert response.json()["message"] == "Internal server error"

    listed = client.get("/api/invoices", headers=headers)
    assert listed.status_code == 200
    assert listed.json() == []
