"""SQLAlchemy backed user store."""

from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError

from ..models.auth import User as UserModel
from ..persistence import Deadline, NoRowsError, guarded
from .service import EmailExistsError, User, UserStore, UserWithHash


def _to_user(row: UserModel) -> User:
    return User(
        id=row.id,
        email=row.email,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyUserStore(UserStore):
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    def create_user(
        self, email: str, password_hash: str, *, deadline: Deadline | None = None
    ) -> User:
        session = self._db.session
        with guarded(session, "create user", deadline):
            row = UserModel(email=email, password_hash=password_hash)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                raise EmailExistsError(email) from exc
            return _to_user(row)

    def get_user_by_email(self, email: str, *, deadline: Deadline | None = None) -> UserWithHash:
        session = self._db.session
        with guarded(session, "get user by email", deadline):
            row = session.query(UserModel).filter_by(email=email).first()
            if row is None:
                raise NoRowsError(f"user {email}")
            return UserWithHash(user=_to_user(row), password_hash=row.password_hash)

    def get_user_by_id(self, user_id: str, *, deadline: Deadline | None = None) -> User:
        session = self._db.session
        with guarded(session, "get user by id", deadline):
            row = session.get(UserModel, user_id)
            if row is None:
                raise NoRowsError(f"user {user_id}")
            return _to_user(row)
