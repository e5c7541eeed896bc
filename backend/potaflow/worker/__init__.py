"""Background execution of queued workflow runs."""

from .executor import ActionExecutor, ActionOutcome, stub_executor
from .poller import PollerThread, RunPoller, build_poller, ensure_poller_started

__all__ = [
    "ActionExecutor",
    "ActionOutcome",
    "PollerThread",
    "RunPoller",
    "build_poller",
    "ensure_poller_started",
    "stub_executor",
]
