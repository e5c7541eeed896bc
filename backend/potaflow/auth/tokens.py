"""Signed session tokens (JWT, HMAC) carrying the user id and email."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

SIGNING_ALGORITHM = "HS256"
# Only symmetric MAC algorithms are ever accepted; this rejects "none" and
# asymmetric algorithms declared by a forged header.
ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]


class InvalidTokenError(Exception):
    """Raised for any token that cannot be trusted."""


@dataclass(frozen=True)
class Claims:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


def issue_token(user_id: str, email: str, secret: bytes, ttl: timedelta) -> str:
    """Return a signed token for the given subject that expires after ``ttl``."""

    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, secret, algorithm=SIGNING_ALGORITHM)


def parse_token(token: str, secret: bytes) -> Claims:
    """Validate ``token`` and return its claims or raise :class:`InvalidTokenError`."""

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=ACCEPTED_ALGORITHMS,
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    user_id = payload.get("sub")
    email = payload.get("email")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("token is missing the subject")
    if not isinstance(email, str) or not email:
        raise InvalidTokenError("token is missing the email")

    return Claims(
        user_id=user_id,
        email=email,
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )
