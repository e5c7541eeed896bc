"""Authentication related database models."""

from __future__ import annotations

from ..extensions import db
from .common import new_id, utcnow


class User(db.Model):
    """Registered account owning workflows."""

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(320), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    workflows = db.relationship(
        "Workflow", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<User {self.email!r}>"
