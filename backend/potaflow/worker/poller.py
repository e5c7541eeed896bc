"""Background poller that drives pending workflow runs to completion."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from flask import Flask

from ..persistence import Deadline
from ..workflows.records import RunStatus, WorkflowRun
from ..workflows.store import WorkflowStore
from .executor import ActionExecutor, stub_executor

DEFAULT_BATCH_SIZE = 10
DEFAULT_INTERVAL = 2.0
DEFAULT_TIMEOUT = 5.0


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RunPoller:
    """Claims pending runs in batches and executes them one after another.

    Runs move ``pending -> running`` before anything else happens; that
    transition is the commit point, so a run whose claim fails stays pending
    for a later tick. After the claim every outcome of the executor is logged
    and the run ends ``success`` if all actions succeeded, ``failed``
    otherwise. Errors are logged per run and never abort the batch.
    """

    def __init__(
        self,
        store: WorkflowStore,
        *,
        logger: logging.Logger,
        executor: ActionExecutor = stub_executor,
        batch_size: int = DEFAULT_BATCH_SIZE,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self._logger = logger
        self._executor = executor
        self.batch_size = batch_size
        self.interval = interval
        self._timeout = timeout
        self._clock = clock

    def _deadline(self) -> Deadline:
        return Deadline.after(self._timeout)

    def run(self, stop_event: threading.Event) -> None:
        """Poll until ``stop_event`` is set; the event is checked between ticks."""

        while not stop_event.is_set():
            try:
                self.process_once()
            except Exception:
                self._logger.exception("worker process error")
            if stop_event.wait(self.interval):
                break

    def process_once(self) -> int:
        """Process one batch and return how many runs reached a terminal status."""

        pending = self._store.list_pending_runs(self.batch_size, deadline=self._deadline())
        finished = 0
        for run in pending:
            if self._process_run(run):
                finished += 1
        return finished

    def _process_run(self, pending: WorkflowRun) -> bool:
        try:
            run = self._store.start_run(pending.id, self._clock(), deadline=self._deadline())
        except Exception:
            self._logger.exception("failed to mark run %s running", pending.id)
            return False

        status = RunStatus.SUCCESS
        try:
            actions = self._store.list_actions(run.workflow_id, deadline=self._deadline())
            outcomes = self._executor(run, actions)
            for outcome in outcomes:
                self._store.insert_run_log(
                    run.id,
                    outcome.action_id,
                    outcome.position,
                    outcome.success,
                    outcome.message,
                    deadline=self._deadline(),
                )
                if not outcome.success:
                    status = RunStatus.FAILED
        except Exception:
            self._logger.exception("failed to execute run %s", run.id)
            status = RunStatus.FAILED

        try:
            self._store.finish_run(run.id, status, self._clock(), deadline=self._deadline())
        except Exception:
            self._logger.exception("failed to mark run %s %s", run.id, status.value)
            return False

        self._logger.info("run %s finished with status %s", run.id, status.value)
        return True


def build_poller(app: Flask, executor: ActionExecutor | None = None) -> RunPoller:
    """Create a poller wired to the app's store, configuration and logger."""

    services = app.extensions["potaflow"]
    return RunPoller(
        services.store,
        logger=app.logger,
        executor=executor or stub_executor,
        batch_size=int(app.config.get("POLL_BATCH_SIZE", DEFAULT_BATCH_SIZE)),
        interval=float(app.config.get("POLL_INTERVAL", DEFAULT_INTERVAL)),
        timeout=float(app.config.get("STORE_TIMEOUT", DEFAULT_TIMEOUT)),
    )


class PollerThread:
    """Runs a :class:`RunPoller` in a daemon thread inside an app context."""

    def __init__(self, app: Flask, poller: RunPoller) -> None:
        self.app = app
        self.poller = poller
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="run-poller", daemon=True)

    def start(self) -> None:
        if self._thread.is_alive():
            return
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        with self.app.app_context():
            self.poller.run(self._stop)


_poller_instance: PollerThread | None = None
_poller_lock = threading.Lock()


def ensure_poller_started(app: Flask) -> PollerThread:
    """Ensure the background run poller is running for the given Flask app."""
    global _poller_instance
    with _poller_lock:
        if _poller_instance is None:
            _poller_instance = PollerThread(app, build_poller(app))
            _poller_instance.start()
    return _poller_instance
