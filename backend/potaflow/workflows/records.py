"""Plain records returned by workflow stores and the workflow service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.FAILED)

    def predecessors(self) -> tuple[RunStatus, ...]:
        """Statuses a run may be in immediately before entering this one."""

        return _PREDECESSORS[self]


_PREDECESSORS: dict[RunStatus, tuple[RunStatus, ...]] = {
    RunStatus.PENDING: (),
    RunStatus.RUNNING: (RunStatus.PENDING,),
    RunStatus.SUCCESS: (RunStatus.RUNNING,),
    RunStatus.FAILED: (RunStatus.RUNNING,),
}


@dataclass(frozen=True)
class Workflow:
    id: str
    user_id: str
    name: str
    is_enabled: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Trigger:
    id: str
    workflow_id: str
    type: str
    config: bytes | None
    created_at: datetime


@dataclass(frozen=True)
class Action:
    id: str
    workflow_id: str
    type: str
    position: int
    config: bytes | None
    created_at: datetime


@dataclass(frozen=True)
class WorkflowRun:
    id: str
    workflow_id: str
    status: RunStatus
    trigger_type: str
    started_at: datetime | None
    finished_at: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class RunLogEntry:
    id: str
    run_id: str
    action_id: str
    action_position: int
    success: bool
    message: str
    created_at: datetime
