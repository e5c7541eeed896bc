"""Small helpers shared by the API blueprints."""

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus
from typing import Any

from flask import current_app, jsonify, request

from ..persistence import Deadline


def request_deadline() -> Deadline:
    """Deadline for the store calls made while serving the current request."""

    return Deadline.after(float(current_app.config.get("STORE_TIMEOUT", 5)))


def json_object() -> dict[str, Any] | None:
    """Return the JSON object body of the request, or ``None`` if it is not one."""

    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        return None
    return payload


def error(message: str, status: HTTPStatus) -> tuple[object, int]:
    return jsonify({"error": message}), status


def timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as ISO-8601 UTC with a ``Z`` suffix."""

    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat() + "Z"
