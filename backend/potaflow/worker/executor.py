"""Pluggable execution of a run's actions.

An executor receives the run and the workflow's actions in execution order
and returns one :class:`ActionOutcome` per action it attempted. The poller
turns each outcome into a run log entry; executors never touch the run's
status themselves.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ..workflows.records import Action, WorkflowRun

STUB_MESSAGE = "action execution stubbed"


@dataclass(frozen=True)
class ActionOutcome:
    action_id: str
    position: int
    success: bool
    message: str

    @classmethod
    def for_action(cls, action: Action, success: bool, message: str) -> ActionOutcome:
        return cls(
            action_id=action.id,
            position=action.position,
            success=success,
            message=message,
        )


class ActionExecutor(Protocol):
    def __call__(
        self, run: WorkflowRun, actions: Sequence[Action]
    ) -> Sequence[ActionOutcome]: ...


def stub_executor(run: WorkflowRun, actions: Sequence[Action]) -> list[ActionOutcome]:
    """Report every action as succeeded without doing anything."""

    return [ActionOutcome.for_action(action, True, STUB_MESSAGE) for action in actions]
