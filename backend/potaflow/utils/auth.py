"""Helper utilities for bearer token authentication."""

from __future__ import annotations

import functools
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, TypeVar, cast

from flask import current_app, g, jsonify, request

from ..auth.tokens import Claims, InvalidTokenError
from ..extensions import get_services

TCallable = TypeVar("TCallable", bound=Callable[..., Any])


def _extract_bearer_token() -> str | None:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def unauthorized(message: str):
    response = jsonify({"error": message})
    response.status_code = HTTPStatus.UNAUTHORIZED
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


def current_claims() -> Claims:
    """Return the claims of the authenticated caller of the current request."""

    return cast(Claims, g.claims)


def require_auth(func: TCallable) -> TCallable:
    """Decorator rejecting requests without a valid bearer token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token_value = _extract_bearer_token()
        if not token_value:
            return unauthorized("missing or invalid Authorization header")

        try:
            claims = get_services().auth.parse_and_validate_token(token_value)
        except InvalidTokenError as exc:
            current_app.logger.debug("rejected token: %s", exc)
            return unauthorized("invalid token")

        g.claims = claims
        return func(*args, **kwargs)

    return cast(TCallable, wrapper)
