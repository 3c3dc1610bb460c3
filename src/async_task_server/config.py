"""Configuration for the task server.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

All durations are expressed in milliseconds, matching the tool interface.
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskServerSettings(BaseSettings):
    """Settings for the task lifecycle core and its adapters.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `TaskServerSettings(_env_file=path_to_env)`.
    """

    default_delay_ms: int = Field(
        default=5000,
        ge=0,
        validation_alias="TASK_DEFAULT_DELAY_MS",
        description="Simulated processing time used when a submission does not specify one",
    )
    default_timeout_ms: int = Field(
        default=30000,
        gt=0,
        validation_alias="TASK_DEFAULT_TIMEOUT_MS",
        description="Task deadline used when a submission does not specify one",
    )

    poll_interval_ms: int = Field(
        default=100,
        gt=0,
        validation_alias="TASK_POLL_INTERVAL_MS",
        description="Tick between re-reads while a status query waits for a change",
    )
    poll_budget_ms: int = Field(
        default=10000,
        ge=0,
        validation_alias="TASK_POLL_BUDGET_MS",
        description="Longest a single status query may wait before returning the current state",
    )

    completed_retention_ms: int = Field(
        default=300000,
        gt=0,
        validation_alias="TASK_COMPLETED_RETENTION_MS",
        description="How long a successfully completed task is kept after its last update",
    )
    other_retention_ms: int | None = Field(
        default=None,
        gt=0,
        validation_alias="TASK_OTHER_RETENTION_MS",
        description=(
            "How long tasks in any other status are kept after their last update. "
            "Defaults to twice the default task timeout."
        ),
    )
    reaper_interval_ms: int = Field(
        default=30000,
        gt=0,
        validation_alias="TASK_REAPER_INTERVAL_MS",
        description="Period between eviction sweeps",
    )

    max_tasks: int = Field(
        default=1000,
        gt=0,
        validation_alias="TASK_MAX_TASKS",
        description="Maximum number of tasks tracked at once; submissions beyond it are refused",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    host: str = Field(default="127.0.0.1", validation_alias="TASK_SERVER_HOST")
    port: int = Field(default=8000, ge=1, le=65535, validation_alias="TASK_SERVER_PORT")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def other_status_retention_ms(self) -> int:
        """Retention for pending, processing and errored tasks."""

        if self.other_retention_ms is not None:
            return self.other_retention_ms
        return self.default_timeout_ms * 2

    @property
    def poll_interval(self) -> timedelta:
        return timedelta(milliseconds=self.poll_interval_ms)

    @property
    def poll_budget(self) -> timedelta:
        return timedelta(milliseconds=self.poll_budget_ms)

    @property
    def completed_retention(self) -> timedelta:
        return timedelta(milliseconds=self.completed_retention_ms)

    @property
    def other_retention(self) -> timedelta:
        return timedelta(milliseconds=self.other_status_retention_ms)

    @property
    def reaper_interval(self) -> timedelta:
        return timedelta(milliseconds=self.reaper_interval_ms)
