"""Test configuration and fixtures."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from async_task_server.config import TaskServerSettings
from async_task_server.tasks.service import TaskService


class FakeClock:
    """A settable clock; thread-safe so executors and tests can share it."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, tzinfo=UTC)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, *, ms: int = 0, seconds: float = 0) -> None:
        with self._lock:
            self._now += timedelta(milliseconds=ms, seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def settings() -> TaskServerSettings:
    """Provide settings with short durations so tests finish quickly."""
    return TaskServerSettings(
        _env_file=None,
        default_delay_ms=20,
        default_timeout_ms=30000,
        poll_interval_ms=10,
        poll_budget_ms=2000,
        completed_retention_ms=300000,
        reaper_interval_ms=50,
        max_tasks=10,
    )


@pytest.fixture
def service(settings: TaskServerSettings) -> Iterator[TaskService]:
    """Provide a task service on the real clock, closed after the test."""
    with TaskService.from_settings(settings) as svc:
        yield svc
