"""REST API endpoints for workflows and their runs."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify

from ..extensions import get_services
from ..utils.auth import current_claims, require_auth
from ..workflows.records import RunLogEntry, Workflow, WorkflowRun
from ..workflows.service import DEFAULT_TRIGGER_TYPE
from .common import error, json_object, request_deadline, timestamp

bp = Blueprint("workflows", __name__)

MAX_NAME_LENGTH = 255


def _serialize_workflow(workflow: Workflow) -> dict[str, Any]:
    """Return a JSON serialisable representation of a workflow."""

    return {
        "id": workflow.id,
        "user_id": workflow.user_id,
        "name": workflow.name,
        "is_enabled": workflow.is_enabled,
        "created_at": timestamp(workflow.created_at),
        "updated_at": timestamp(workflow.updated_at),
    }


def _serialize_run(run: WorkflowRun) -> dict[str, Any]:
    return {
        "id": run.id,
        "workflow_id": run.workflow_id,
        "status": run.status.value,
        "trigger_type": run.trigger_type,
        "started_at": timestamp(run.started_at),
        "finished_at": timestamp(run.finished_at),
        "created_at": timestamp(run.created_at),
    }


def _serialize_run_log(entry: RunLogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "run_id": entry.run_id,
        "action_id": entry.action_id,
        "action_position": entry.action_position,
        "success": entry.success,
        "message": entry.message,
        "created_at": timestamp(entry.created_at),
    }


def _normalize_name(value: Any) -> tuple[str, list[str]]:
    """Validate a workflow name, returning errors if present."""

    if not isinstance(value, str) or not value.strip():
        return "", ["name is required"]
    name = value.strip()
    if len(name) > MAX_NAME_LENGTH:
        return "", [f"name must be at most {MAX_NAME_LENGTH} characters"]
    return name, []


@bp.post("/workflows")
@require_auth
def create_workflow() -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)

    name, errors = _normalize_name(payload.get("name"))
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    workflow = get_services().workflows.create_workflow(
        current_claims().user_id, name, deadline=request_deadline()
    )
    return jsonify(_serialize_workflow(workflow)), HTTPStatus.CREATED


@bp.get("/workflows")
@require_auth
def list_workflows() -> tuple[object, int]:
    workflows = get_services().workflows.list_workflows(
        current_claims().user_id, deadline=request_deadline()
    )
    return jsonify([_serialize_workflow(wf) for wf in workflows]), HTTPStatus.OK


@bp.get("/workflows/<workflow_id>")
@require_auth
def get_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = get_services().workflows.get_workflow(
        current_claims().user_id, workflow_id, deadline=request_deadline()
    )
    return jsonify(_serialize_workflow(workflow)), HTTPStatus.OK


@bp.put("/workflows/<workflow_id>")
@require_auth
def update_workflow(workflow_id: str) -> tuple[object, int]:
    payload = json_object()
    if payload is None:
        return error("invalid request body", HTTPStatus.BAD_REQUEST)

    name, errors = _normalize_name(payload.get("name"))
    is_enabled = payload.get("is_enabled")
    if is_enabled is not None and not isinstance(is_enabled, bool):
        errors.append("is_enabled must be a boolean")
    if errors:
        return jsonify({"errors": errors}), HTTPStatus.BAD_REQUEST

    service = get_services().workflows
    user_id = current_claims().user_id
    deadline = request_deadline()
    if is_enabled is None:
        is_enabled = service.get_workflow(user_id, workflow_id, deadline=deadline).is_enabled

    workflow = service.update_workflow(user_id, workflow_id, name, is_enabled, deadline=deadline)
    return jsonify(_serialize_workflow(workflow)), HTTPStatus.OK


@bp.delete("/workflows/<workflow_id>")
@require_auth
def delete_workflow(workflow_id: str) -> tuple[object, int]:
    get_services().workflows.delete_workflow(
        current_claims().user_id, workflow_id, deadline=request_deadline()
    )
    return "", HTTPStatus.NO_CONTENT


@bp.post("/workflows/<workflow_id>/runs")
@require_auth
def enqueue_run(workflow_id: str) -> tuple[object, int]:
    payload = json_object() or {}
    trigger_type = payload.get("trigger_type") or ""
    if not isinstance(trigger_type, str):
        return error("trigger_type must be a string", HTTPStatus.BAD_REQUEST)

    run = get_services().workflows.enqueue_run(
        current_claims().user_id,
        workflow_id,
        trigger_type.strip() or DEFAULT_TRIGGER_TYPE,
        deadline=request_deadline(),
    )
    return jsonify(_serialize_run(run)), HTTPStatus.ACCEPTED


@bp.get("/workflows/<workflow_id>/runs")
@require_auth
def list_runs(workflow_id: str) -> tuple[object, int]:
    runs = get_services().workflows.list_runs(
        current_claims().user_id, workflow_id, deadline=request_deadline()
    )
    return jsonify([_serialize_run(run) for run in runs]), HTTPStatus.OK


@bp.get("/workflows/<workflow_id>/runs/<run_id>/logs")
@require_auth
def list_run_logs(workflow_id: str, run_id: str) -> tuple[object, int]:
    entries = get_services().workflows.list_run_logs(
        current_claims().user_id, workflow_id, run_id, deadline=request_deadline()
    )
    return jsonify([_serialize_run_log(entry) for entry in entries]), HTTPStatus.OK
