"""Flask-SQLAlchemy implementation of :class:`WorkflowStore`."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func, update

from ..models.logs import RunLog as RunLogModel
from ..models.workflow import Action as ActionModel
from ..models.workflow import Trigger as TriggerModel
from ..models.workflow import Workflow as WorkflowModel
from ..models.workflow import WorkflowRun as WorkflowRunModel
from ..persistence import Deadline, NoRowsError, guarded
from .records import Action, RunLogEntry, RunStatus, Trigger, Workflow, WorkflowRun
from .store import WorkflowStore


def _workflow(row: WorkflowModel) -> Workflow:
    return Workflow(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        is_enabled=row.is_enabled,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _trigger(row: TriggerModel) -> Trigger:
    return Trigger(
        id=row.id,
        workflow_id=row.workflow_id,
        type=row.type,
        config=row.config,
        created_at=row.created_at,
    )


def _action(row: ActionModel) -> Action:
    return Action(
        id=row.id,
        workflow_id=row.workflow_id,
        type=row.type,
        position=row.position,
        config=row.config,
        created_at=row.created_at,
    )


def _run(row: WorkflowRunModel) -> WorkflowRun:
    return WorkflowRun(
        id=row.id,
        workflow_id=row.workflow_id,
        status=RunStatus(row.status),
        trigger_type=row.trigger_type,
        started_at=row.started_at,
        finished_at=row.finished_at,
        created_at=row.created_at,
    )


def _run_log(row: RunLogModel) -> RunLogEntry:
    return RunLogEntry(
        id=row.id,
        run_id=row.run_id,
        action_id=row.action_id,
        action_position=row.action_position,
        success=row.success,
        message=row.message,
        created_at=row.created_at,
    )


class SqlAlchemyWorkflowStore(WorkflowStore):
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    @property
    def _session(self):
        return self._db.session

    def _owned_workflow(self, user_id: str, workflow_id: str) -> WorkflowModel:
        row = (
            self._session.query(WorkflowModel)
            .filter_by(id=workflow_id, user_id=user_id)
            .first()
        )
        if row is None:
            raise NoRowsError(f"workflow {workflow_id}")
        return row

    # Workflows

    def create_workflow(
        self, user_id: str, name: str, *, deadline: Deadline | None = None
    ) -> Workflow:
        session = self._session
        with guarded(session, "create workflow", deadline):
            row = WorkflowModel(user_id=user_id, name=name)
            session.add(row)
            session.commit()
            return _workflow(row)

    def list_workflows(self, user_id: str, *, deadline: Deadline | None = None) -> list[Workflow]:
        session = self._session
        with guarded(session, "list workflows", deadline):
            rows = (
                session.query(WorkflowModel)
                .filter_by(user_id=user_id)
                .order_by(WorkflowModel.created_at.desc(), WorkflowModel.id.desc())
                .all()
            )
            return [_workflow(row) for row in rows]

    def get_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> Workflow:
        with guarded(self._session, "get workflow", deadline):
            return _workflow(self._owned_workflow(user_id, workflow_id))

    def update_workflow(
        self,
        user_id: str,
        workflow_id: str,
        name: str,
        is_enabled: bool,
        *,
        deadline: Deadline | None = None,
    ) -> Workflow:
        session = self._session
        with guarded(session, "update workflow", deadline):
            row = self._owned_workflow(user_id, workflow_id)
            row.name = name
            row.is_enabled = is_enabled
            session.commit()
            return _workflow(row)

    def delete_workflow(
        self, user_id: str, workflow_id: str, *, deadline: Deadline | None = None
    ) -> None:
        session = self._session
        with guarded(session, "delete workflow", deadline):
            session.delete(self._owned_workflow(user_id, workflow_id))
            session.commit()

    # Triggers

    def _scoped_trigger(self, workflow_id: str, trigger_id: str) -> TriggerModel:
        row = (
            self._session.query(TriggerModel)
            .filter_by(id=trigger_id, workflow_id=workflow_id)
            .first()
        )
        if row is None:
            raise NoRowsError(f"trigger {trigger_id}")
        return row

    def create_trigger(
        self,
        workflow_id: str,
        trigger_type: str,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger:
        session = self._session
        with guarded(session, "create trigger", deadline):
            row = TriggerModel(workflow_id=workflow_id, type=trigger_type, config=config)
            session.add(row)
            session.commit()
            return _trigger(row)

    def list_triggers(self, workflow_id: str, *, deadline: Deadline | None = None) -> list[Trigger]:
        session = self._session
        with guarded(session, "list triggers", deadline):
            rows = (
                session.query(TriggerModel)
                .filter_by(workflow_id=workflow_id)
                .order_by(TriggerModel.created_at.asc())
                .all()
            )
            return [_trigger(row) for row in rows]

    def update_trigger(
        self,
        workflow_id: str,
        trigger_id: str,
        trigger_type: str,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Trigger:
        session = self._session
        with guarded(session, "update trigger", deadline):
            row = self._scoped_trigger(workflow_id, trigger_id)
            row.type = trigger_type
            row.config = config
            session.commit()
            return _trigger(row)

    def delete_trigger(
        self, workflow_id: str, trigger_id: str, *, deadline: Deadline | None = None
    ) -> None:
        session = self._session
        with guarded(session, "delete trigger", deadline):
            session.delete(self._scoped_trigger(workflow_id, trigger_id))
            session.commit()

    # Actions

    def _scoped_action(self, workflow_id: str, action_id: str) -> ActionModel:
        row = (
            self._session.query(ActionModel)
            .filter_by(id=action_id, workflow_id=workflow_id)
            .first()
        )
        if row is None:
            raise NoRowsError(f"action {action_id}")
        return row

    def create_action(
        self,
        workflow_id: str,
        action_type: str,
        position: int,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Action:
        session = self._session
        with guarded(session, "create action", deadline):
            last_seq = (
                session.query(func.coalesce(func.max(ActionModel.seq), 0))
                .filter(ActionModel.workflow_id == workflow_id)
                .scalar()
            )
            row = ActionModel(
                workflow_id=workflow_id,
                type=action_type,
                position=position,
                seq=last_seq + 1,
                config=config,
            )
            session.add(row)
            session.commit()
            return _action(row)

    def list_actions(self, workflow_id: str, *, deadline: Deadline | None = None) -> list[Action]:
        session = self._session
        with guarded(session, "list actions", deadline):
            rows = (
                session.query(ActionModel)
                .filter_by(workflow_id=workflow_id)
                .order_by(ActionModel.position.asc(), ActionModel.seq.asc())
                .all()
            )
            return [_action(row) for row in rows]

    def update_action(
        self,
        workflow_id: str,
        action_id: str,
        action_type: str,
        position: int,
        config: bytes | None,
        *,
        deadline: Deadline | None = None,
    ) -> Action:
        session = self._session
        with guarded(session, "update action", deadline):
            row = self._scoped_action(workflow_id, action_id)
            row.type = action_type
            row.position = position
            row.config = config
            session.commit()
            return _action(row)

    def delete_action(
        self, workflow_id: str, action_id: str, *, deadline: Deadline | None = None
    ) -> None:
        session = self._session
        with guarded(session, "delete action", deadline):
            session.delete(self._scoped_action(workflow_id, action_id))
            session.commit()

    # Runs

    def create_run(
        self, workflow_id: str, trigger_type: str, *, deadline: Deadline | None = None
    ) -> WorkflowRun:
        session = self._session
        with guarded(session, "create run", deadline):
            row = WorkflowRunModel(
                workflow_id=workflow_id,
                status=RunStatus.PENDING.value,
                trigger_type=trigger_type,
                started_at=None,
                finished_at=None,
            )
            session.add(row)
            session.commit()
            return _run(row)

    def list_runs(self, workflow_id: str, *, deadline: Deadline | None = None) -> list[WorkflowRun]:
        session = self._session
        with guarded(session, "list runs", deadline):
            rows = (
                session.query(WorkflowRunModel)
                .filter_by(workflow_id=workflow_id)
                .order_by(WorkflowRunModel.created_at.desc())
                .all()
            )
            return [_run(row) for row in rows]

    def get_run(
        self, workflow_id: str, run_id: str, *, deadline: Deadline | None = None
    ) -> WorkflowRun:
        session = self._session
        with guarded(session, "get run", deadline):
            row = (
                session.query(WorkflowRunModel)
                .filter_by(id=run_id, workflow_id=workflow_id)
                .first()
            )
            if row is None:
                raise NoRowsError(f"run {run_id}")
            return _run(row)

    def list_pending_runs(
        self, limit: int, *, deadline: Deadline | None = None
    ) -> list[WorkflowRun]:
        session = self._session
        with guarded(session, "list pending runs", deadline):
            rows = (
                session.query(WorkflowRunModel)
                .filter_by(status=RunStatus.PENDING.value)
                .order_by(WorkflowRunModel.created_at.asc())
                .limit(limit)
                .all()
            )
            pending = [_run(row) for row in rows]
            # End the read so an idle poller does not hold a transaction open.
            session.commit()
            return pending

    def _transition(
        self,
        operation: str,
        run_id: str,
        target: RunStatus,
        values: dict[str, Any],
        deadline: Deadline | None,
    ) -> WorkflowRun:
        session = self._session
        allowed = [status.value for status in target.predecessors()]
        with guarded(session, operation, deadline):
            result = session.execute(
                update(WorkflowRunModel)
                .where(WorkflowRunModel.id == run_id, WorkflowRunModel.status.in_(allowed))
                .values(status=target.value, **values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise NoRowsError(f"run {run_id} cannot move to {target.value}")
            session.commit()
            row = session.get(WorkflowRunModel, run_id, populate_existing=True)
            return _run(row)

    def start_run(
        self, run_id: str, started_at: datetime, *, deadline: Deadline | None = None
    ) -> WorkflowRun:
        return self._transition(
            "start run", run_id, RunStatus.RUNNING, {"started_at": started_at}, deadline
        )

    def finish_run(
        self,
        run_id: str,
        status: RunStatus,
        finished_at: datetime,
        *,
        deadline: Deadline | None = None,
    ) -> WorkflowRun:
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal run status")
        return self._transition(
            "finish run", run_id, status, {"finished_at": finished_at}, deadline
        )

    # Run logs

    def insert_run_log(
        self,
        run_id: str,
        action_id: str,
        action_position: int,
        success: bool,
        message: str,
        *,
        deadline: Deadline | None = None,
    ) -> RunLogEntry:
        session = self._session
        with guarded(session, "insert run log", deadline):
            row = RunLogModel(
                run_id=run_id,
                action_id=action_id,
                action_position=action_position,
                success=success,
                message=message,
            )
            session.add(row)
            session.commit()
            return _run_log(row)

    def list_run_logs(
        self, run_id: str, *, deadline: Deadline | None = None
    ) -> list[RunLogEntry]:
        session = self._session
        with guarded(session, "list run logs", deadline):
            rows = (
                session.query(RunLogModel)
                .filter_by(run_id=run_id)
                .order_by(RunLogModel.action_position.asc(), RunLogModel.created_at.asc())
                .all()
            )
            return [_run_log(row) for row in rows]
