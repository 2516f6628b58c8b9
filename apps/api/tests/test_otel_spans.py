from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("OTEL_ENABLED", "true")

from ubos.core.config import get_settings
from ubos.core.database import Base, get_db
from ubos.main import app
from ubos.middleware.rate_limit import reset_rate_limiter
from ubos.otel import setup_inmemory_otel


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
def span_exporter() -> InMemorySpanExporter:
    exporter = setup_inmemory_otel("ubos-api")
    exporter.clear()
    return exporter

@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()



def test_request_span_contains_correlation_id(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    response = client.post(
        "/api/clients",
        json={"name": "Traced Client"},
        headers={"x-user-id": "otel-user", "X-Correlation-Id": "otel-corr-1"},
    )
    assert response.status_code == 201

    spans = span_exporter.get_finished_spans()
    assert spans
    assert any(span.attributes.get("correlation_id") == "otel-corr-1" for span in spans)


def test_generated_correlation_id_reaches_span(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    generated = response.headers["x-correlation-id"]

    spans = span_exporter.get_finished_spans()
    assert any(span.attributes.get("correlation_id") == generated for span in spans)


def test_span_and_response_share_truncated_correlation_id(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    oversized = "c" * 300
    response = client.get("/health", headers={"X-Correlation-Id": f"  {oversized}  "})
    assert response.status_code == 200
    assert response.headers["x-correlation-id"] == "c" * 128

    tagged = [span.attributes.get("correlation_id") for span in span_exporter.get_finished_spans()]
    assert "c" * 128 in tagged
    assert all(value is None or len(value) <= 128 for value in tagged)
