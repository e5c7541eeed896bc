"""Ownership-scoped workflow, trigger, action and run operations."""

from __future__ import annotations

import logging

from ..persistence import Deadline, NoRowsError
from .errors import (
    ActionNotFoundError,
    RunNotFoundError,
    TriggerNotFoundError,
    WorkflowNotFoundError,
)
from .records import Action, RunLogEntry, Trigger, Workflow, WorkflowRun
from .store import WorkflowStore

DEFAULT_TRIGGER_TYPE = "manual"


class WorkflowService:
    """Tenant-scoped CRUD on workflows and their children.

    Every child operation resolves the parent workflow through
    :meth:`get_workflow` first, so a caller who does not own the workflow
    gets the same :class:`WorkflowNotFoundError` as for a missing one.
    Store errors other than "no rows" propagate unchanged.
    """

    def __init__(self, store: WorkflowStore, *, logger: logging.Logger | None = None) -> None:
        self._store = store
        self._logger = logger or logging.getLogger(__name__)

    # Workflows

    def create_workflow(
        self, user_id: str, name: str, *, deadline: Deadline | None = None
    ) -> Workflow:
        workflow = self._store.create_workflow(user_id, name, deadline=deadline)
        self._logger.info("user %s created workflow %s", user_id, workflow.id)
        return workflow

    def list_workflows(self, user_id: str, *, deadline: Deadline | None = None) -> list[Workflow]:
        return self._store.list_workflows(user_id, deadline=deadline)

    def get_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> Workflow:
        try:
            return self._store.get_workflow(user_id, workflow_id, deadline=deadline)
        except NoRowsError:
            raise WorkflowNotFoundError(workflow_id) from None

    def update_workflow(
        self,
        user_id: str,
        workflow_id: str,
        name: str,
        is_enabled: bool,
        *,
        deadline: Deadline | None = None,
    ) -> Workflow:
        try:
            return self._store.update_workflow(
                user_id, workflow_id, name, is_enabled, deadline=deadline
            )
        except NoRowsError:
            raise WorkflowNotFoundError(workflow_id) from None

    def delete_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> None:
        try:
            self._store.delete_workflow(user_id, workflow_id, deadline=deadline)
        except NoRowsError:
            raise WorkflowNotFoundError(workflow_id) from None
        self._logger.info("user %s deleted workflow %s", user_id, workflow_id)

    # Triggers

    def create_trigger(
        self,
        user_id: str,
        workflow_id: str,
        trigger_type: str,
        config: bytes | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        return self._store.create_trigger(workflow_id, trigger_type, config, deadline=deadline)

    def list_triggers(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> list[Trigger]:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        return self._store.list_triggers(workflow_id, deadline=deadline)

    def update_trigger(
        self,
        user_id: str,
        workflow_id: str,
        trigger_id: str,
        trigger_type: str,
        config: bytes | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        try:
            return self._store.update_trigger(
                workflow_id, trigger_id, trigger_type, config, deadline=deadline
            )
        except NoRowsError:
            raise TriggerNotFoundError(trigger_id) from None

    def delete_trigger(
        self,
        user_id: str,
        workflow_id: str,
        trigger_id: str,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        try:
            self._store.delete_trigger(workflow_id, trigger_id, deadline=deadline)
        except NoRowsError:
            raise TriggerNotFoundError(trigger_id) from None

    # Actions. Positions are stored as given; they are neither renumbered
    # nor checked for duplicates.

    def create_action(
        self,
        user_id: str,
        workflow_id: str,
        action_type: str,
        position: int,
        config: bytes | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Action:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        return self._store.create_action(
            workflow_id, action_type, position, config, deadline=deadline
        )

    def list_actions(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> list[Action]:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        return self._store.list_actions(workflow_id, deadline=deadline)

    def update_action(
        self,
        user_id: str,
        workflow_id: str,
        action_id: str,
        action_type: str,
        position: int,
        config: bytes | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Action:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        try:
            return self._store.update_action(
                workflow_id, action_id, action_type, position, config, deadline=deadline
            )
        except NoRowsError:
            raise ActionNotFoundError(action_id) from None

    def delete_action(
        self,
        user_id: str,
        workflow_id: str,
        action_id: str,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        try:
            self._store.delete_action(workflow_id, action_id, deadline=deadline)
        except NoRowsError:
            raise ActionNotFoundError(action_id) from None

    # Runs

    def enqueue_run(
        self,
        user_id: str,
        workflow_id: str,
        trigger_type: str = DEFAULT_TRIGGER_TYPE,
        *,
        deadline: Deadline | None = None,
    ) -> WorkflowRun:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        run = self._store.create_run(workflow_id, trigger_type, deadline=deadline)
        self._logger.info("enqueued run %s for workflow %s", run.id, workflow_id)
        return run

    def list_runs(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> list[WorkflowRun]:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        return self._store.list_runs(workflow_id, deadline=deadline)

    def list_run_logs(
        self,
        user_id: str,
        workflow_id: str,
        run_id: str,
        *,
        deadline: Deadline | None = None,
    ) -> list[RunLogEntry]:
        self.get_workflow(user_id, workflow_id, deadline=deadline)
        try:
            self._store.get_run(workflow_id, run_id, deadline=deadline)
        except NoRowsError:
            raise RunNotFoundError(run_id) from None
        return self._store.list_run_logs(run_id, deadline=deadline)
