"""Configuration for the PotaFlow backend."""

from __future__ import annotations

import os

DEV_JWT_SECRET = "potaflow-development-secret-change-me"


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_database_url(app_env: str) -> str:
    """Pick the database URL for the environment.

    ``DATABASE_URL`` always wins; otherwise PROD reads ``DB_URL`` and DEV
    reads ``DB_TEST_URL``, falling back to a local SQLite file.
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    if app_env == "PROD" and os.getenv("DB_URL"):
        return os.environ["DB_URL"]
    if app_env == "DEV" and os.getenv("DB_TEST_URL"):
        return os.environ["DB_TEST_URL"]
    return "sqlite:///potaflow.db"


class Config:
    """Base configuration for the Flask application."""

    APP_ENV: str = os.getenv("APP_ENV", "DEV").upper()
    DEBUG_MODE: bool = _env_bool("DEBUG_MODE", False)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO")

    SQLALCHEMY_DATABASE_URI: str = resolve_database_url(APP_ENV)
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    JSONIFY_PRETTYPRINT_REGULAR: bool = False
    CORS_ALLOWED_ORIGINS: str = os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173")
    DB_INIT_MAX_RETRIES: int = int(os.getenv("DB_INIT_MAX_RETRIES", "30"))
    DB_INIT_RETRY_DELAY: float = float(os.getenv("DB_INIT_RETRY_DELAY", "2"))

    JWT_SECRET: str | None = os.getenv("JWT_SECRET")
    JWT_EXPIRY_SECONDS: int = int(os.getenv("JWT_EXPIRY_SECONDS", "86400"))

    # Read through Argon2Params.from_mapping, which validates them.
    ARGON_MEMORY: str | None = os.getenv("ARGON_MEMORY")
    ARGON_ITERATIONS: str | None = os.getenv("ARGON_ITERATIONS")
    ARGON_PARALLELISM: str | None = os.getenv("ARGON_PARALLELISM")
    ARGON_SALT_LENGTH: str | None = os.getenv("ARGON_SALT_LENGTH")
    ARGON_KEY_LENGTH: str | None = os.getenv("ARGON_KEY_LENGTH")

    STORE_TIMEOUT: float = float(os.getenv("STORE_TIMEOUT", "5"))
    POLL_INTERVAL: float = float(os.getenv("POLL_INTERVAL", "2"))
    POLL_BATCH_SIZE: int = int(os.getenv("POLL_BATCH_SIZE", "10"))
    ENABLE_RUN_POLLER: bool = _env_bool("ENABLE_RUN_POLLER", False)

    LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "10 per minute")
    RATELIMIT_STORAGE_URI: str = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
