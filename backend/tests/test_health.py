"""Tests for the healthcheck endpoint."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from backend.potaflow.api import health as health_module
from conftest import TestConfig, create_app


def create_test_app():
    """Create an application instance configured for tests."""

    return create_app(TestConfig)


def test_health_endpoint_returns_ok():
    """The healthcheck endpoint should report a reachable database."""

    app = create_test_app()
    client = app.test_client()

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "db": "ok"}


def test_health_endpoint_reports_unreachable_database(monkeypatch):
    """A failing database ping should produce a 503 without raising."""

    app = create_test_app()
    client = app.test_client()

    def unreachable(statement):
        raise OperationalError(statement, {}, Exception("connection refused"))

    monkeypatch.setattr(health_module, "text", unreachable)
    response = client.get("/api/health")

    assert response.status_code == 503
    assert response.get_json() == {"status": "unhealthy", "db": "unreachable"}
