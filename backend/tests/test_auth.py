"""Registration, login and bearer token tests for the API."""

from __future__ import annotations

from datetime import timedelta

import pytest

from backend.potaflow.auth.tokens import issue_token
from conftest import TEST_PASSWORD, TestConfig, create_app


def test_register_login_and_me(client):
    register = client.post(
        "/api/auth/register",
        json={"email": " Grace@Example.com ", "password": TEST_PASSWORD},
    )
    assert register.status_code == 201
    user = register.get_json()
    assert user["email"] == "grace@example.com"
    assert set(user) == {"id", "email", "created_at", "updated_at"}
    assert user["created_at"].endswith("Z")

    login = client.post(
        "/api/auth/login", json={"email": "grace@example.com", "password": TEST_PASSWORD}
    )
    assert login.status_code == 200
    body = login.get_json()
    assert body["token"]
    assert body["user"]["id"] == user["id"]

    me = client.get("/api/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json() == user


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"email": "a@example.com"},
        {"password": "pw"},
        {"email": "", "password": "pw"},
        {"email": "a@example.com", "password": ""},
        {"email": 42, "password": "pw"},
    ],
)
def test_register_rejects_incomplete_payloads(client, payload):
    response = client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert response.get_json()["error"]


def test_register_rejects_non_json_body(client):
    response = client.post("/api/auth/register", data="nope", content_type="text/plain")

    assert response.status_code == 400


def test_duplicate_registration_conflicts(client, register_user):
    register_user(email="dup@example.com")

    response = client.post(
        "/api/auth/register", json={"email": "DUP@example.com", "password": "other"}
    )

    assert response.status_code == 409
    assert response.get_json() == {"error": "email already exists"}


def test_login_failures_share_one_response(client, register_user):
    register_user(email="known@example.com")

    wrong_password = client.post(
        "/api/auth/login", json={"email": "known@example.com", "password": "wrong"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "unknown@example.com", "password": TEST_PASSWORD}
    )

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json() == {
        "error": "invalid credentials"
    }


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer"},
        {"Authorization": "Bearer "},
    ],
)
def test_protected_routes_require_a_bearer_token(client, headers):
    response = client.get("/api/workflows", headers=headers)

    assert response.status_code == 401
    assert response.get_json() == {"error": "missing or invalid Authorization header"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_and_expired_tokens_are_rejected(app, client, register_user):
    register_user(email="expiring@example.com")
    login = client.post(
        "/api/auth/login", json={"email": "expiring@example.com", "password": TEST_PASSWORD}
    )
    user_id = login.get_json()["user"]["id"]

    garbage = client.get("/api/me", headers={"Authorization": "Bearer not.a.token"})
    assert garbage.status_code == 401
    assert garbage.get_json() == {"error": "invalid token"}

    expired = issue_token(
        user_id,
        "expiring@example.com",
        app.config["JWT_SECRET"].encode("utf-8"),
        timedelta(seconds=-60),
    )
    response = client.get("/api/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_me_for_deleted_user_is_unauthorized(app, client):
    token = issue_token(
        "00000000-0000-0000-0000-000000000000",
        "ghost@example.com",
        app.config["JWT_SECRET"].encode("utf-8"),
        timedelta(minutes=5),
    )

    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


class RateLimitedConfig(TestConfig):
    LOGIN_RATE_LIMIT = "3 per minute"


def test_login_is_rate_limited():
    app = create_app(RateLimitedConfig)
    client = app.test_client()

    statuses = [
        client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "x"}
        ).status_code
        for _ in range(4)
    ]

    assert statuses == [401, 401, 401, 429]
