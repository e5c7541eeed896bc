"""Tenant-scoped workflows, triggers, actions and runs."""

from .errors import (
    ActionNotFoundError,
    NotFoundError,
    RunNotFoundError,
    TriggerNotFoundError,
    WorkflowNotFoundError,
)
from .records import Action, RunLogEntry, RunStatus, Trigger, Workflow, WorkflowRun
from .service import WorkflowService
from .store import WorkflowStore

__all__ = [
    "Action",
    "ActionNotFoundError",
    "NotFoundError",
    "RunLogEntry",
    "RunNotFoundError",
    "RunStatus",
    "Trigger",
    "TriggerNotFoundError",
    "Workflow",
    "WorkflowNotFoundError",
    "WorkflowRun",
    "WorkflowService",
    "WorkflowStore",
]
