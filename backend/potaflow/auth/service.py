"""Registration, login and token validation on top of a user store."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..persistence import Deadline, NoRowsError
from .password import Argon2Params, hash_password, verify_password
from .tokens import Claims, issue_token, parse_token


class EmailExistsError(Exception):
    """Raised when registering an email that already has an account."""


class InvalidCredentialsError(Exception):
    """Raised for an unknown email or a wrong password alike."""


class UserNotFoundError(LookupError):
    """Raised when no user exists for the requested id."""


@dataclass(frozen=True)
class User:
    """User view without the password hash."""

    id: str
    email: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserWithHash:
    user: User
    password_hash: str


class UserStore(ABC):
    """Persistence needed by :class:`AuthService`.

    Lookups raise :class:`~potaflow.persistence.NoRowsError` for a missing
    user and ``create_user`` raises :class:`EmailExistsError` on conflict.
    """

    @abstractmethod
    def create_user(
        self, email: str, password_hash: str, *, deadline: Deadline | None = None
    ) -> User: ...

    @abstractmethod
    def get_user_by_email(
        self, email: str, *, deadline: Deadline | None = None
    ) -> UserWithHash: ...

    @abstractmethod
    def get_user_by_id(self, user_id: str, *, deadline: Deadline | None = None) -> User: ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Coordinates password hashing, token issuance and user persistence."""

    def __init__(
        self,
        store: UserStore,
        *,
        secret: bytes,
        token_ttl: timedelta,
        params: Argon2Params | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._secret = secret
        self._token_ttl = token_ttl
        self._params = params or Argon2Params()
        self._logger = logger or logging.getLogger(__name__)

    def register(self, email: str, password: str, *, deadline: Deadline | None = None) -> User:
        password_hash = hash_password(password, self._params)
        user = self._store.create_user(normalize_email(email), password_hash, deadline=deadline)
        self._logger.info("registered user %s", user.id)
        return user

    def login(
        self, email: str, password: str, *, deadline: Deadline | None = None
    ) -> tuple[User, str]:
        """Verify credentials and return the user with a freshly issued token."""

        try:
            record = self._store.get_user_by_email(normalize_email(email), deadline=deadline)
        except NoRowsError:
            raise InvalidCredentialsError("invalid credentials") from None

        if not verify_password(password, record.password_hash):
            raise InvalidCredentialsError("invalid credentials")

        token = issue_token(record.user.id, record.user.email, self._secret, self._token_ttl)
        return record.user, token

    def parse_and_validate_token(self, token: str) -> Claims:
        return parse_token(token, self._secret)

    def get_user(self, user_id: str, *, deadline: Deadline | None = None) -> User:
        try:
            return self._store.get_user_by_id(user_id, deadline=deadline)
        except NoRowsError:
            raise UserNotFoundError(user_id) from None
