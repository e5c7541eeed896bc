"""Tests for application wiring: configuration checks and error mapping."""

from __future__ import annotations

import pytest

from backend.potaflow.persistence import StoreError
from backend.potaflow.workflows.sql_store import SqlAlchemyWorkflowStore
from conftest import TestConfig, create_app


def test_unknown_environment_is_rejected():
    class StagingConfig(TestConfig):
        APP_ENV = "STAGING"

    with pytest.raises(RuntimeError, match="unknown environment"):
        create_app(StagingConfig)


def test_production_requires_a_jwt_secret():
    class ProductionConfig(TestConfig):
        APP_ENV = "PROD"
        JWT_SECRET = None

    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        create_app(ProductionConfig)


def test_invalid_argon_parameters_fail_at_startup():
    class BrokenArgonConfig(TestConfig):
        ARGON_MEMORY = "lots"

    with pytest.raises(ValueError, match="ARGON_MEMORY"):
        create_app(BrokenArgonConfig)


def test_store_failures_map_to_internal_error(client, auth_headers, monkeypatch):
    def failing_list(self, user_id, *, deadline=None):
        raise StoreError("list workflows failed: connection reset")

    monkeypatch.setattr(SqlAlchemyWorkflowStore, "list_workflows", failing_list)

    response = client.get("/api/workflows", headers=auth_headers)

    assert response.status_code == 500
    assert response.get_json() == {"error": "internal error"}


def test_zero_store_timeout_surfaces_as_internal_error(app, client, auth_headers, monkeypatch):
    monkeypatch.setitem(app.config, "STORE_TIMEOUT", 0)

    response = client.get("/api/workflows", headers=auth_headers)

    assert response.status_code == 500
