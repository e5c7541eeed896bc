"""Persistence contract consumed by the workflow service and the run poller.

Implementations raise :class:`~potaflow.persistence.NoRowsError` when the
addressed row does not exist (or is outside the given owner/workflow scope)
and :class:`~potaflow.persistence.StoreError` for every other failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..persistence import Deadline
from .records import Action, RunLogEntry, RunStatus, Trigger, Workflow, WorkflowRun


class WorkflowStore(ABC):
    # Workflows, scoped by owning user.

    @abstractmethod
    def create_workflow(
        self, user_id: str, name: str, *, deadline: Deadline | None = None
    ) -> Workflow: ...

    @abstractmethod
    def list_workflows(self, user_id: str, *, deadline: Deadline | None = None) -> list[Workflow]:
        """Return the user's workflows, newest first."""

    @abstractmethod
    def get_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> Workflow: ...

    @abstractmethod
    def update_workflow(
        self,
        user_id: str,
        workflow_id: str,
        name: str,
        is_enabled: bool,
        *,
        deadline: Deadline | None = None,
    ) -> Workflow: ...

    @abstractmethod
    def delete_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> None:
        """Delete the workflow together with its triggers, actions and runs."""

    # Triggers, scoped by workflow.

    @abstractmethod
    def create_trigger(
        self,
        workflow_id: str,
        trigger_type: str,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger: ...

    @abstractmethod
    def list_triggers(
        self, workflow_id: str, *, deadline: Deadline | None = None
    ) -> list[Trigger]: ...

    @abstractmethod
    def update_trigger(
        self,
        workflow_id: str,
        trigger_id: str,
        trigger_type: str,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger: ...

    @abstractmethod
    def delete_trigger(
        self, workflow_id: str, trigger_id: str, *, deadline: Deadline | None = None
    ) -> None: ...

    # Actions, scoped by workflow.

    @abstractmethod
    def create_action(
        self,
        workflow_id: str,
        action_type: str,
        position: int,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Action: ...

    @abstractmethod
    def list_actions(self, workflow_id: str, *, deadline: Deadline | None = None) -> list[Action]:
        """Return actions by position, ties in insertion order."""

    @abstractmethod
    def update_action(
        self,
        workflow_id: str,
        action_id: str,
        action_type: str,
        position: int,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Action: ...

    @abstractmethod
    def delete_action(
        self, workflow_id: str, action_id: str, *, deadline: Deadline | None = None
    ) -> None: ...

    # Runs.

    @abstractmethod
    def create_run(
        self, workflow_id: str, trigger_type: str, *, deadline: Deadline | None = None
    ) -> WorkflowRun:
        """Insert a ``pending`` run without start or finish timestamps."""

    @abstractmethod
    def list_runs(
        self, workflow_id: str, *, deadline: Deadline | None = None
    ) -> list[WorkflowRun]: ...

    @abstractmethod
    def get_run(
        self, workflow_id: str, run_id: str, *, deadline: Deadline | None = None
    ) -> WorkflowRun: ...

    @abstractmethod
    def list_pending_runs(
        self, limit: int, *, deadline: Deadline | None = None
    ) -> list[WorkflowRun]:
        """Return up to ``limit`` pending runs across all tenants, oldest first."""

    @abstractmethod
    def start_run(
        self, run_id: str, started_at: datetime, *, deadline: Deadline | None = None
    ) -> WorkflowRun:
        """Move a ``pending`` run to ``running``; ``NoRowsError`` if it is not pending."""

    @abstractmethod
    def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        finished_at: datetime,
        *,
        deadline: Deadline | None = None,
    ) -> WorkflowRun:
        """Move a ``running`` run to a terminal status; ``NoRowsError`` if it is not running."""

    # Run logs.

    @abstractmethod
    def insert_run_log(
        self,
        run_id: str,
        action_id: str,
        action_position: int,
        success: bool,
        message: str,
        *,
        deadline: Deadline | None = None,
    ) -> RunLogEntry: ...

    @abstractmethod
    def list_run_logs(
        self, run_id: str, *, deadline: Deadline | None = None
    ) -> list[RunLogEntry]: ...
