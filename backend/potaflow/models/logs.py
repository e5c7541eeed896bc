"""Run log model definition."""

from __future__ import annotations

from ..extensions import db
from .common import new_id, utcnow


class RunLog(db.Model):
    """Outcome of one action within one workflow run."""

    __tablename__ = "workflow_run_logs"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    run_id = db.Column(
        db.String(36),
        db.ForeignKey("workflow_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Not a foreign key: the log outlives later edits to the action.
    action_id = db.Column(db.String(36), nullable=False)
    action_position = db.Column(db.Integer, nullable=False)
    success = db.Column(db.Boolean, nullable=False)
    message = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    run = db.relationship("WorkflowRun", back_populates="logs")

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<RunLog {self.id} for run {self.run_id}>"
