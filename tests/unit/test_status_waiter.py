"""Unit tests for the bounded-wait status protocol."""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest

from async_task_server.tasks.errors import TaskNotFoundError, TaskTimedOutError
from async_task_server.tasks.models import TIMEOUT_MESSAGE, TaskRecord, TaskStatus
from async_task_server.tasks.store import TaskStore
from async_task_server.tasks.waiter import StatusWaiter, finalize_timeout


def _setup(clock, *, budget_ms: int = 2000) -> tuple[TaskStore, StatusWaiter]:
    store = TaskStore(max_tasks=5, clock=clock)
    now = clock()
    store.insert(
        TaskRecord(
            task_id="t1",
            created_at=now,
            updated_at=now,
            deadline_at=now + timedelta(seconds=30),
        )
    )
    waiter = StatusWaiter(
        store=store,
        poll_interval=timedelta(milliseconds=10),
        poll_budget=timedelta(milliseconds=budget_ms),
        clock=clock,
    )
    return store, waiter


def _later(delay: float, fn, *args, **kwargs) -> threading.Timer:
    timer = threading.Timer(delay, fn, args=args, kwargs=kwargs)
    timer.start()
    return timer


def test_returns_at_once_when_status_already_moved(clock) -> None:
    store, waiter = _setup(clock)
    store.transition("t1", TaskStatus.PROCESSING)

    record = waiter.wait("t1", TaskStatus.PENDING)

    assert record.status is TaskStatus.PROCESSING


def test_resolves_on_status_change(clock) -> None:
    store, waiter = _setup(clock, budget_ms=5000)
    timer = _later(0.05, store.transition, "t1", TaskStatus.PROCESSING)

    started = time.monotonic()
    try:
        record = waiter.wait("t1", TaskStatus.PENDING)
    finally:
        timer.cancel()

    assert record.status is TaskStatus.PROCESSING
    assert time.monotonic() - started < 2.5


def test_resolves_on_terminal_state(clock) -> None:
    store, waiter = _setup(clock, budget_ms=5000)
    store.transition("t1", TaskStatus.PROCESSING)
    timer = _later(0.05, store.transition, "t1", TaskStatus.COMPLETE, result="cba")

    try:
        record = waiter.wait("t1", TaskStatus.PROCESSING)
    finally:
        timer.cancel()

    assert record.status is TaskStatus.COMPLETE
    assert record.result == "cba"


def test_budget_exhaustion_returns_current_state(clock) -> None:
    _store, waiter = _setup(clock, budget_ms=100)

    started = time.monotonic()
    record = waiter.wait("t1", TaskStatus.PENDING)
    elapsed = time.monotonic() - started

    assert record.status is TaskStatus.PENDING
    assert 0.09 <= elapsed < 2.0


def test_missing_task_raises_not_found(clock) -> None:
    _store, waiter = _setup(clock)
    with pytest.raises(TaskNotFoundError):
        waiter.wait("other", TaskStatus.PENDING)


def test_task_evicted_while_waiting_raises_not_found(clock) -> None:
    store, waiter = _setup(clock, budget_ms=5000)
    timer = _later(0.05, store.delete, "t1")

    try:
        with pytest.raises(TaskNotFoundError):
            waiter.wait("t1", TaskStatus.PENDING)
    finally:
        timer.cancel()


def test_deadline_passing_while_waiting_finalizes_timeout(clock) -> None:
    store, waiter = _setup(clock, budget_ms=5000)
    timer = _later(0.05, clock.advance, seconds=60)

    try:
        with pytest.raises(TaskTimedOutError):
            waiter.wait("t1", TaskStatus.PENDING)
    finally:
        timer.cancel()

    record = store.get("t1")
    assert record is not None
    assert record.status is TaskStatus.ERROR
    assert "timed out" in (record.error or "")


def test_finalize_timeout_keeps_a_terminal_result(clock) -> None:
    store, _waiter = _setup(clock)
    store.transition("t1", TaskStatus.PROCESSING)
    store.transition("t1", TaskStatus.COMPLETE, result="cba")

    record = finalize_timeout(store, "t1")

    assert record.status is TaskStatus.COMPLETE
    assert record.result == "cba"


def test_finalize_timeout_writes_error(clock) -> None:
    store, _waiter = _setup(clock)

    with pytest.raises(TaskTimedOutError):
        finalize_timeout(store, "t1")

    record = store.get("t1")
    assert record is not None
    assert record.error == TIMEOUT_MESSAGE
