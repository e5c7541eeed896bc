from __future__ import annotations

import pathlib
import sys
import uuid
from collections.abc import Callable

import pytest
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from potaflow import Config, create_app
    from backend.potaflow.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()

TEST_PASSWORD = "correct horse battery staple"


class TestConfig(ConfigBase):
    TESTING = True
    APP_ENV = "DEV"
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    CORS_ALLOWED_ORIGINS = "http://localhost"
    JWT_SECRET = "test-secret-that-is-at-least-32-bytes-long"
    # Cheap Argon2id parameters keep the suite fast.
    ARGON_MEMORY = "256"
    ARGON_ITERATIONS = "1"
    ARGON_PARALLELISM = "2"
    ARGON_SALT_LENGTH = "16"
    ARGON_KEY_LENGTH = "32"
    LOGIN_RATE_LIMIT = "1000 per minute"
    ENABLE_RUN_POLLER = False
    POLL_INTERVAL = 0.01


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def services(app):
    return app.extensions["potaflow"]


@pytest.fixture(autouse=True)
def cleanup_rows(request):
    yield

    if "app" not in request.fixturenames:
        return

    from backend.potaflow.models import Action, RunLog, Trigger, User, Workflow, WorkflowRun

    db.session.rollback()
    for model in (RunLog, WorkflowRun, Action, Trigger, Workflow, User):
        db.session.query(model).delete()
    db.session.commit()


@pytest.fixture()
def register_user(client) -> Callable[..., dict[str, str]]:
    """Register and log in a fresh user, returning its Authorization header."""

    def factory(email: str | None = None, password: str = TEST_PASSWORD) -> dict[str, str]:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        registered = client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        assert registered.status_code == 201, registered.get_json()
        login = client.post("/api/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.get_json()
        return {"Authorization": f"Bearer {login.get_json()['token']}"}

    return factory


@pytest.fixture()
def auth_headers(register_user: Callable[..., dict[str, str]]) -> dict[str, str]:
    return register_user()
