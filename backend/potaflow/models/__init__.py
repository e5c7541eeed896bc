"""Database models for the PotaFlow backend."""

from .auth import User
from .logs import RunLog
from .workflow import Action, Trigger, Workflow, WorkflowRun

__all__ = ["User", "Workflow", "Trigger", "Action", "WorkflowRun", "RunLog"]
