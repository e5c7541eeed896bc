"""Store error types and deadline handling shared by the SQLAlchemy stores."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


class StoreError(Exception):
    """Raised when the backing store fails for reasons other than a missing row."""


class StoreTimeoutError(StoreError):
    """Raised when a store operation is attempted after its deadline."""


class NoRowsError(LookupError):
    """Raised by stores when the addressed row does not exist."""


@dataclass(frozen=True)
class Deadline:
    """Absolute point in monotonic time by which a store call must finish."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


@contextmanager
def guarded(session: Session, operation: str, deadline: Deadline | None = None) -> Iterator[None]:
    """Run a unit of store work, translating SQLAlchemy failures into ``StoreError``.

    The session is rolled back on any error. When a deadline is given it is
    checked up front and, on PostgreSQL, the remaining budget is applied as a
    statement timeout for the current transaction.
    """

    if deadline is not None and deadline.expired():
        raise StoreTimeoutError(f"{operation}: deadline exceeded")

    try:
        if deadline is not None and session.get_bind().dialect.name == "postgresql":
            budget_ms = max(1, int(deadline.remaining() * 1000))
            session.execute(text(f"SET LOCAL statement_timeout = {budget_ms}"))
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreError(f"{operation} failed: {exc}") from exc
    except Exception:
        session.rollback()
        raise
