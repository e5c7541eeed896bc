"""Credential hashing, session tokens and the user-facing auth service."""

from .password import Argon2Params, HashDecodeError, hash_password, verify_password
from .service import (
    AuthService,
    EmailExistsError,
    InvalidCredentialsError,
    User,
    UserNotFoundError,
    UserStore,
)
from .tokens import Claims, InvalidTokenError, issue_token, parse_token

__all__ = [
    "Argon2Params",
    "AuthService",
    "Claims",
    "EmailExistsError",
    "HashDecodeError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "User",
    "UserNotFoundError",
    "UserStore",
    "hash_password",
    "issue_token",
    "parse_token",
    "verify_password",
]
