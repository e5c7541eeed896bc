"""Extensions used by the Flask application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import current_app, g
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

if TYPE_CHECKING:
    from .auth.service import AuthService
    from .workflows.service import WorkflowService
    from .workflows.store import WorkflowStore


def _limiter_key_func() -> str:
    claims = getattr(g, "claims", None)
    if claims is not None:
        return f"user:{claims.user_id}"
    return get_remote_address()


db = SQLAlchemy()
cors = CORS()
limiter = Limiter(key_func=_limiter_key_func, default_limits=[])


@dataclass(frozen=True)
class Services:
    """Core services bound to one application instance."""

    auth: AuthService
    workflows: WorkflowService
    store: WorkflowStore


def get_services() -> Services:
    return current_app.extensions["potaflow"]


__all__ = ["db", "cors", "limiter", "Services", "get_services"]
