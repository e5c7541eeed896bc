"""REST endpoints for registration, login and the current user."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify

from ..auth.service import (
    EmailExistsError,
    InvalidCredentialsError,
    User,
    UserNotFoundError,
)
from ..extensions import get_services, limiter
from ..utils.auth import current_claims, require_auth, unauthorized
from .common import error, json_object, request_deadline, timestamp

bp = Blueprint("auth", __name__)


def _serialize(user: User) -> dict[str, object | None]:
    return {
        "id": user.id,
        "email": user.email,
        "created_at": timestamp(user.created_at),
        "updated_at": timestamp(user.updated_at),
    }


def _credentials() -> tuple[str, str] | None:
    payload = json_object()
    if payload is None:
        return None
    email = payload.get("email")
    password = payload.get("password")
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    if not email.strip() or not password:
        return None
    return email, password


def _login_rate_limit() -> str:
    return current_app.config.get("LOGIN_RATE_LIMIT", "10 per minute")


@bp.post("/auth/register")
def register() -> tuple[object, int]:
    credentials = _credentials()
    if credentials is None:
        return error("email and password are required", HTTPStatus.BAD_REQUEST)

    email, password = credentials
    try:
        user = get_services().auth.register(email, password, deadline=request_deadline())
    except EmailExistsError:
        return error("email already exists", HTTPStatus.CONFLICT)

    return jsonify(_serialize(user)), HTTPStatus.CREATED


@bp.post("/auth/login")
@limiter.limit(_login_rate_limit)
def login() -> tuple[object, int]:
    credentials = _credentials()
    if credentials is None:
        return error("email and password are required", HTTPStatus.BAD_REQUEST)

    email, password = credentials
    try:
        user, token = get_services().auth.login(email, password, deadline=request_deadline())
    except InvalidCredentialsError:
        return error("invalid credentials", HTTPStatus.UNAUTHORIZED)

    return jsonify({"token": token, "user": _serialize(user)}), HTTPStatus.OK


@bp.get("/me")
@require_auth
def me():
    try:
        user = get_services().auth.get_user(current_claims().user_id, deadline=request_deadline())
    except UserNotFoundError:
        return unauthorized("unauthorized")
    return jsonify(_serialize(user)), HTTPStatus.OK
