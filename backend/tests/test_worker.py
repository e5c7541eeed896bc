"""Tests for the background run poller."""

from __future__ import annotations

import logging
import threading
import time

import pytest

from backend.potaflow.extensions import db
from backend.potaflow.worker import poller as poller_module
from backend.potaflow.worker.executor import STUB_MESSAGE, ActionOutcome
from backend.potaflow.worker.poller import PollerThread, RunPoller, build_poller
from backend.potaflow.workflows import RunStatus
from backend.potaflow.workflows.sql_store import SqlAlchemyWorkflowStore

LOGGER = logging.getLogger("test.worker")


@pytest.fixture()
def store(services):
    return services.store


@pytest.fixture()
def owner(services):
    return services.auth.register("worker@example.com", "pw").id


@pytest.fixture()
def workflow(services, owner):
    return services.workflows.create_workflow(owner, "Worker target")


class FlakyStartStore(SqlAlchemyWorkflowStore):
    """Fails to claim the listed runs; everything else hits the database."""

    def __init__(self, db, failing: set[str]) -> None:
        super().__init__(db)
        self.failing = failing

    def start_run(self, run_id, started_at, *, deadline=None):
        if run_id in self.failing:
            raise RuntimeError("claim failed")
        return super().start_run(run_id, started_at, deadline=deadline)


def test_pending_runs_finish_with_logs(services, store, owner, workflow):
    first = services.workflows.create_action(owner, workflow.id, "fetch", 1)
    second = services.workflows.create_action(owner, workflow.id, "notify", 2)
    run = services.workflows.enqueue_run(owner, workflow.id)

    finished = RunPoller(store, logger=LOGGER).process_once()

    assert finished == 1
    done = store.get_run(workflow.id, run.id)
    assert done.status is RunStatus.SUCCESS
    assert done.started_at is not None
    assert done.finished_at is not None
    assert done.finished_at >= done.started_at
    logs = store.list_run_logs(run.id)
    assert [(entry.action_id, entry.action_position) for entry in logs] == [
        (first.id, 1),
        (second.id, 2),
    ]
    assert all(entry.success and entry.message == STUB_MESSAGE for entry in logs)


def test_run_without_actions_succeeds(services, store, owner, workflow):
    run = services.workflows.enqueue_run(owner, workflow.id)

    RunPoller(store, logger=LOGGER).process_once()

    assert store.get_run(workflow.id, run.id).status is RunStatus.SUCCESS
    assert store.list_run_logs(run.id) == []


def test_failed_outcome_fails_the_run(services, store, owner, workflow):
    services.workflows.create_action(owner, workflow.id, "fetch", 1)
    services.workflows.create_action(owner, workflow.id, "notify", 2)
    run = services.workflows.enqueue_run(owner, workflow.id)

    def executor(run, actions):
        return [
            ActionOutcome.for_action(actions[0], True, "ok"),
            ActionOutcome.for_action(actions[1], False, "smtp unavailable"),
        ]

    RunPoller(store, logger=LOGGER, executor=executor).process_once()

    assert store.get_run(workflow.id, run.id).status is RunStatus.FAILED
    assert [entry.success for entry in store.list_run_logs(run.id)] == [True, False]


def test_executor_error_fails_the_run_and_batch_continues(services, store, owner, workflow):
    broken = services.workflows.enqueue_run(owner, workflow.id)
    healthy = services.workflows.enqueue_run(owner, workflow.id)

    def executor(run, actions):
        if run.id == broken.id:
            raise RuntimeError("executor crashed")
        return []

    finished = RunPoller(store, logger=LOGGER, executor=executor).process_once()

    assert finished == 2
    assert store.get_run(workflow.id, broken.id).status is RunStatus.FAILED
    assert store.get_run(workflow.id, healthy.id).status is RunStatus.SUCCESS


def test_failed_claim_leaves_run_pending(app, services, owner, workflow):
    skipped = services.workflows.enqueue_run(owner, workflow.id)
    processed = services.workflows.enqueue_run(owner, workflow.id)
    flaky = FlakyStartStore(db, failing={skipped.id})

    finished = RunPoller(flaky, logger=LOGGER).process_once()

    assert finished == 1
    assert flaky.get_run(workflow.id, skipped.id).status is RunStatus.PENDING
    assert flaky.get_run(workflow.id, processed.id).status is RunStatus.SUCCESS

    flaky.failing.clear()
    assert RunPoller(flaky, logger=LOGGER).process_once() == 1
    assert flaky.get_run(workflow.id, skipped.id).status is RunStatus.SUCCESS


def test_batch_size_limits_each_tick(services, store, owner, workflow):
    runs = [services.workflows.enqueue_run(owner, workflow.id) for _ in range(3)]
    poller = RunPoller(store, logger=LOGGER, batch_size=2)

    assert poller.process_once() == 2
    assert poller.process_once() == 1
    assert poller.process_once() == 0
    assert all(
        store.get_run(workflow.id, run.id).status is RunStatus.SUCCESS for run in runs
    )


def test_idle_tick_leaves_no_open_transaction(store, workflow):
    store.list_runs(workflow.id)
    assert db.session().in_transaction()

    assert RunPoller(store, logger=LOGGER).process_once() == 0

    assert not db.session().in_transaction()


def test_batch_size_must_be_positive(store):
    with pytest.raises(ValueError):
        RunPoller(store, logger=LOGGER, batch_size=0)


class ExplodingStore:
    def __init__(self) -> None:
        self.calls = 0

    def list_pending_runs(self, limit, *, deadline=None):
        self.calls += 1
        raise RuntimeError("database unavailable")


def test_run_loop_survives_errors_and_honours_stop_event():
    store = ExplodingStore()
    poller = RunPoller(store, logger=LOGGER, interval=0.01)
    stop = threading.Event()

    thread = threading.Thread(target=poller.run, args=(stop,))
    thread.start()
    deadline = time.monotonic() + 5
    while store.calls < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    stop.set()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert store.calls >= 3


def test_run_returns_immediately_when_already_stopped():
    store = ExplodingStore()
    stop = threading.Event()
    stop.set()

    RunPoller(store, logger=LOGGER).run(stop)

    assert store.calls == 0


def test_build_poller_reads_app_config(app):
    poller = build_poller(app)

    assert poller.batch_size == app.config["POLL_BATCH_SIZE"]
    assert poller.interval == app.config["POLL_INTERVAL"]


def test_poller_thread_processes_runs_until_stopped(app, services, store, owner, workflow):
    run = services.workflows.enqueue_run(owner, workflow.id)
    executed = threading.Event()

    def executor(run, actions):
        executed.set()
        return []

    thread = PollerThread(app, build_poller(app, executor=executor))
    thread.start()
    assert executed.wait(timeout=5)
    thread.stop(timeout=5)

    assert not thread.is_alive()
    # The poller committed through its own session.
    db.session.expire_all()
    assert store.get_run(workflow.id, run.id).status is RunStatus.SUCCESS



def test_ensure_poller_started_is_a_singleton(app, monkeypatch):
    started: list[PollerThread] = []

    def fake_start(self):
        started.append(self)

    monkeypatch.setattr(poller_module, "_poller_instance", None)
    monkeypatch.setattr(PollerThread, "start", fake_start)

    first = poller_module.ensure_poller_started(app)
    second = poller_module.ensure_poller_started(app)

    assert first is second
    assert started == [first]
