"""Workflow, trigger, action and run model definitions."""

from __future__ import annotations

from ..extensions import db
from .common import new_id, utcnow

RUN_STATUSES = ("pending", "running", "success", "failed")


class Workflow(db.Model):
    """A user's workflow; parent of triggers, actions and runs."""

    __tablename__ = "workflows"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    is_enabled = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user = db.relationship("User", back_populates="workflows")
    triggers = db.relationship(
        "Trigger", back_populates="workflow", cascade="all, delete-orphan"
    )
    actions = db.relationship(
        "Action", back_populates="workflow", cascade="all, delete-orphan"
    )
    runs = db.relationship(
        "WorkflowRun", back_populates="workflow", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<Workflow {self.name!r}>"


class Trigger(db.Model):
    __tablename__ = "triggers"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    workflow_id = db.Column(
        db.String(36),
        db.ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(100), nullable=False)
    config = db.Column(db.LargeBinary, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    workflow = db.relationship("Workflow", back_populates="triggers")


class Action(db.Model):
    __tablename__ = "actions"
    __table_args__ = (db.UniqueConstraint("workflow_id", "seq", name="uq_actions_workflow_seq"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    workflow_id = db.Column(
        db.String(36),
        db.ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(100), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    # Insertion order within the workflow; breaks ties between equal positions.
    seq = db.Column(db.Integer, nullable=False)
    config = db.Column(db.LargeBinary, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    workflow = db.relationship("Workflow", back_populates="actions")


class WorkflowRun(db.Model):
    """One execution attempt of a workflow."""

    __tablename__ = "workflow_runs"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    workflow_id = db.Column(
        db.String(36),
        db.ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = db.Column(
        db.Enum(*RUN_STATUSES, name="workflow_run_status"),
        nullable=False,
        default="pending",
        index=True,
    )
    trigger_type = db.Column(db.String(100), nullable=False)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    workflow = db.relationship("Workflow", back_populates="runs")
    logs = db.relationship("RunLog", back_populates="run", cascade="all, delete-orphan")

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<WorkflowRun {self.id} {self.status}>"
