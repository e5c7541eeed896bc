"""Application factory for the PotaFlow backend."""
from __future__ import annotations

import time
from datetime import timedelta
from http import HTTPStatus

from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError

from .config import DEV_JWT_SECRET, Config
from .extensions import Services, cors, db, limiter
from .persistence import StoreError
from .worker.poller import build_poller
from .workflows.errors import NotFoundError

_KNOWN_ENVIRONMENTS = {"DEV", "PROD"}


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application instance."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _validate_config(app)

    db.init_app(app)

    if cors is not None:
        allowed_origins = [
            origin.strip()
            for origin in (app.config.get("CORS_ALLOWED_ORIGINS") or "").split(",")
            if origin.strip()
        ]
        cors.init_app(
            app,
            resources={r"/api/*": {"origins": allowed_origins}},
            allow_headers=["Content-Type", "Authorization"],
        )

    limiter.init_app(app)

    from .api.auth import bp as auth_bp
    from .api.health import bp as health_bp
    from .api.triggers_actions import bp as triggers_actions_bp
    from .api.workflow import bp as workflow_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(workflow_bp, url_prefix="/api")
    app.register_blueprint(triggers_actions_bp, url_prefix="/api")
    _register_error_handlers(app)

    with app.app_context():
        # Import models to ensure they are registered with SQLAlchemy before creating tables.
        from .models import auth, logs, workflow  # noqa: F401

        _initialize_database(app)

    app.extensions["potaflow"] = _build_services(app)

    if app.config.get("ENABLE_RUN_POLLER", False):
        from .worker.poller import ensure_poller_started

        ensure_poller_started(app)

    return app


def _validate_config(app: Flask) -> None:
    app_env = app.config.get("APP_ENV", "DEV")
    if app_env not in _KNOWN_ENVIRONMENTS:
        raise RuntimeError(f"unknown environment: {app_env} (expected PROD or DEV)")
    if app_env == "PROD" and not app.config.get("JWT_SECRET"):
        raise RuntimeError("JWT_SECRET must be set when APP_ENV is PROD")


def _build_services(app: Flask) -> Services:
    from .auth.password import Argon2Params
    from .auth.service import AuthService
    from .auth.store import SqlAlchemyUserStore
    from .workflows.service import WorkflowService
    from .workflows.sql_store import SqlAlchemyWorkflowStore

    secret = app.config.get("JWT_SECRET") or DEV_JWT_SECRET
    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    store = SqlAlchemyWorkflowStore(db)
    auth_service = AuthService(
        SqlAlchemyUserStore(db),
        secret=secret,
        token_ttl=timedelta(seconds=int(app.config["JWT_EXPIRY_SECONDS"])),
        params=Argon2Params.from_mapping(app.config),
        logger=app.logger,
    )
    return Services(
        auth=auth_service,
        workflows=WorkflowService(store, logger=app.logger),
        store=store,
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(NotFoundError)
    def _not_found(exc: NotFoundError):
        return jsonify({"error": "not found"}), HTTPStatus.NOT_FOUND

    @app.errorhandler(StoreError)
    def _store_error(exc: StoreError):
        app.logger.error("store failure: %s", exc)
        return jsonify({"error": "internal error"}), HTTPStatus.INTERNAL_SERVER_ERROR


def _initialize_database(app: Flask) -> None:
    """Initialize the database with retry logic to handle delayed availability."""

    max_retries = int(app.config.get("DB_INIT_MAX_RETRIES", 30))
    retry_delay = float(app.config.get("DB_INIT_RETRY_DELAY", 2))

    for attempt in range(1, max_retries + 1):
        try:
            db.create_all()
            return
        except OperationalError as exc:
            if attempt >= max_retries:
                app.logger.exception("Database initialization failed after %s attempts.", attempt)
                raise

            app.logger.warning(
                "Database initialization attempt %s/%s failed: %s", attempt, max_retries, exc
            )
            time.sleep(retry_delay)


__all__ = ["Config", "build_poller", "create_app"]
