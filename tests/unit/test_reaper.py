"""Unit tests for retention and eviction."""

from __future__ import annotations

import time
from datetime import timedelta

from async_task_server.tasks.models import TaskRecord, TaskStatus
from async_task_server.tasks.reaper import Reaper
from async_task_server.tasks.store import TaskStore

COMPLETED = timedelta(minutes=5)
OTHER = timedelta(minutes=1)


def _setup(clock, *, interval: timedelta = timedelta(seconds=30)) -> tuple[TaskStore, Reaper]:
    store = TaskStore(max_tasks=10, clock=clock)
    reaper = Reaper(
        store=store,
        completed_retention=COMPLETED,
        other_retention=OTHER,
        interval=interval,
        clock=clock,
    )
    return store, reaper


def _add(store: TaskStore, clock, task_id: str, status: TaskStatus) -> None:
    now = clock()
    store.insert(TaskRecord(task_id=task_id, created_at=now, updated_at=now))
    if status is TaskStatus.PENDING:
        return
    store.transition(task_id, TaskStatus.PROCESSING)
    if status is TaskStatus.COMPLETE:
        store.transition(task_id, status, result="done")
    elif status is TaskStatus.ERROR:
        store.transition(task_id, status, error="boom")


def test_retention_depends_on_status(clock) -> None:
    store, reaper = _setup(clock)
    _add(store, clock, "done", TaskStatus.COMPLETE)
    _add(store, clock, "failed", TaskStatus.ERROR)

    assert reaper.retention_for(store.get("done")) == COMPLETED  # type: ignore[arg-type]
    assert reaper.retention_for(store.get("failed")) == OTHER  # type: ignore[arg-type]


def test_sweep_evicts_only_records_past_their_retention(clock) -> None:
    store, reaper = _setup(clock)
    for task_id, status in [
        ("pending", TaskStatus.PENDING),
        ("processing", TaskStatus.PROCESSING),
        ("failed", TaskStatus.ERROR),
        ("done", TaskStatus.COMPLETE),
    ]:
        _add(store, clock, task_id, status)

    clock.advance(seconds=60)
    assert reaper.sweep() == 0

    clock.advance(seconds=1)
    assert reaper.sweep() == 3
    assert store.get("done") is not None

    clock.advance(seconds=240)
    assert reaper.sweep() == 1
    assert len(store) == 0


def test_sweep_is_idempotent(clock) -> None:
    store, reaper = _setup(clock)
    _add(store, clock, "old", TaskStatus.ERROR)
    clock.advance(seconds=120)
    _add(store, clock, "fresh", TaskStatus.ERROR)

    assert reaper.sweep() == 1
    assert reaper.sweep() == 0
    assert store.get("fresh") is not None


def test_age_is_measured_from_the_last_write(clock) -> None:
    store, reaper = _setup(clock)
    _add(store, clock, "t", TaskStatus.PENDING)

    clock.advance(seconds=50)
    store.transition("t", TaskStatus.PROCESSING)
    clock.advance(seconds=50)

    assert reaper.sweep() == 0

    # Reads do not refresh retention.
    store.get("t")
    clock.advance(seconds=11)
    assert reaper.sweep() == 1


def test_background_thread_sweeps_periodically(clock) -> None:
    store, reaper = _setup(clock, interval=timedelta(milliseconds=10))
    _add(store, clock, "old", TaskStatus.ERROR)
    clock.advance(seconds=120)

    reaper.start()
    try:
        assert reaper.is_running
        deadline = time.monotonic() + 5
        while store.get("old") is not None and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        reaper.stop()

    assert store.get("old") is None
    assert not reaper.is_running
