"""REST API endpoints for the triggers and actions of a workflow."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify

from ..extensions import get_services
from ..utils.auth import current_claims, require_auth
from ..workflows.records import Action, Trigger
from .common import error, json_object, request_deadline, timestamp

bp = Blueprint("triggers_actions", __name__)

MAX_CONFIG_BYTES = 500_000
MAX_TYPE_LENGTH = 100
# Positions are stored in a 32-bit INTEGER column.
MIN_POSITION = -(2**31)
MAX_POSITION = 2**31 - 1


def _decode_config(config: bytes | None) -> Any:
    if config is None:
        return None
    try:
        return json.loads(config.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


def _serialize_trigger(trigger: Trigger) -> dict[str, Any]:
    return {
        "id": trigger.id,
        "workflow_id": trigger.workflow_id,
        "type": trigger.type,
        "config": _decode_config(trigger.config),
        "created_at": timestamp(trigger.created_at),
    }


def _serialize_action(action: Action) -> dict[str, Any]:
    return {
        "id": action.id,
        "workflow_id": action.workflow_id,
        "type": action.type,
        "position": action.position,
        "config": _decode_config(action.config),
        "created_at": timestamp(action.created_at),
    }


def _normalize_payload(
    payload: dict[str, Any], *, with_position: bool
) -> tuple[dict[str, Any], list[str]]:
    """Validate a trigger or action payload; ``config`` becomes opaque JSON bytes."""

    errors: list[str] = []

    kind = payload.get("type")
    if not isinstance(kind, str) or not kind.strip():
        errors.append("type is required")
        kind = ""
    elif len(kind.strip()) > MAX_TYPE_LENGTH:
        errors.append(f"type must be at most {MAX_TYPE_LENGTH} characters")
    kind = kind.strip()

    config: bytes | None = None
    if payload.get("config") is not None:
        config = json.dumps(payload["config"]).encode("utf-8")
        if len(config) > MAX_CONFIG_BYTES:
            errors.append("config exceeds the maximum size")

    data: dict[str, Any] = {"type": kind, "config": config}

    if with_position:
        position = payload.get("position", 0)
        # bool is an int subclass; reject it explicitly.
        if (
            not isinstance(position, int)
            or isinstance(position, bool)
            or not MIN_POSITION <= position <= MAX_POSITION
        ):
            errors.append("position must be an integer")
            position = 0
        data["position"] = position

    return data, errors


@bp.post("/workflows/<workflow_id>/triggers")
@require_auth
def create_trigger(workflow_id: str) -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)
    data, errors = _normalize_payload(payload, with_position=False)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    trigger = get_services().workflows.create_trigger(
        current_claims().user_id,
        workflow_id,
        data["type"],
        data["config"],
        deadline=request_deadline(),
    )
    return jsonify(_serialize_trigger(trigger)), HTTPStatus.CREATED


@bp.get("/workflows/<workflow_id>/triggers")
@require_auth
def list_triggers(workflow_id: str) -> tuple[object, int]:
    triggers = get_services().workflows.list_triggers(
        current_claims().user_id, workflow_id, deadline=request_deadline()
    )
    return jsonify([_serialize_trigger(trigger) for trigger in triggers]), HTTPStatus.OK


@bp.put("/workflows/<workflow_id>/triggers/<trigger_id>")
@require_auth
def update_trigger(workflow_id: str, trigger_id: str) -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)
    data, errors = _normalize_payload(payload, with_position=False)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    trigger = get_services().workflows.update_trigger(
        current_claims().user_id,
        workflow_id,
        trigger_id,
        data["type"],
        data["config"],
        deadline=request_deadline(),
    )
    return jsonify(_serialize_trigger(trigger)), HTTPStatus.OK


@bp.delete("/workflows/<workflow_id>/triggers/<trigger_id>")
@require_auth
def delete_trigger(workflow_id: str, trigger_id: str) -> tuple[object, int]:
    get_services().workflows.delete_trigger(
        current_claims().user_id, workflow_id, trigger_id, deadline=request_deadline()
    )
    return "", HTTPStatus.NO_CONTENT


@bp.post("/workflows/<workflow_id>/actions")
@require_auth
def create_action(workflow_id: str) -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)
    data, errors = _normalize_payload(payload, with_position=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    action = get_services().workflows.create_action(
        current_claims().user_id,
        workflow_id,
        data["type"],
        data["position"],
        data["config"],
        deadline=request_deadline(),
    )
    return jsonify(_serialize_action(action)), HTTPStatus.CREATED


@bp.get("/workflows/<workflow_id>/actions")
@require_auth
def list_actions(workflow_id: str) -> tuple[object, int]:
    actions = get_services().workflows.list_actions(
        current_claims().user_id, workflow_id, deadline=request_deadline()
    )
    return jsonify([_serialize_action(action) for action in actions]), HTTPStatus.OK


@bp.put("/workflows/<workflow_id>/actions/<action_id>")
@require_auth
def update_action(workflow_id: str, action_id: str) -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)
    data, errors = _normalize_payload(payload, with_position=True)
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    action = get_services().workflows.update_action(
        current_claims().user_id,
        workflow_id,
        action_id,
        data["type"],
        data["position"],
        data["config"],
        deadline=request_deadline(),
    )
    return jsonify(_serialize_action(action)), HTTPStatus.OK


@bp.delete("/workflows/<workflow_id>/actions/<action_id>")
@require_auth
def delete_action(workflow_id: str, action_id: str) -> tuple[object, int]:
    get_services().workflows.delete_action(
        current_claims().user_id, workflow_id, action_id, deadline=request_deadline()
    )
    return "", HTTPStatus.NO_CONTENT
