"""Configuration models for the execution pollers.

This module provides Pydantic-based configuration classes that consolidate
poller settings and callback hooks, enabling dependency injection and
testability.
"""

from typing import Any, Callable

from pydantic import BaseModel, Field


def _noop(*args: Any, **kwargs: Any) -> None:
    return None


class PollerConfig(BaseModel):
    """Configuration for ExecutionPoller and MultiExecutionPoller behavior.

    Attributes:
        interval: Seconds between status fetches (float for test flexibility)
        auto_stop_on_terminal: Stop polling once the execution (or, for the
            multi poller, every tracked execution) reached a terminal state
    """

    interval: float = Field(
        default=3.0,
        gt=0,
        description="Interval in seconds between execution status fetches"
    )

    auto_stop_on_terminal: bool = Field(
        default=True,
        description="Stop the poll loop once a terminal lifecycle state is observed"
    )

    model_config = {
        "frozen": True,  # Immutable after creation for safety
        "extra": "forbid",  # Reject unknown fields
    }

    @classmethod
    def from_app_settings(cls, settings) -> "PollerConfig":
        """Factory method to construct config from an ExecmonSettings instance.

        Args:
            settings: ExecmonSettings instance from core.settings

        Returns:
            PollerConfig with values from app settings
        """
        return cls(
            interval=settings.EXECMON_POLL_INTERVAL_MS / 1000.0,
            auto_stop_on_terminal=settings.EXECMON_AUTO_STOP,
        )


class PollerHooks(BaseModel):
    """Callbacks invoked by a poller registration.

    Every hook defaults to a no-op. Hooks may be plain callables or
    coroutine functions; a returned awaitable is awaited before polling
    continues.

    Attributes:
        on_update: Called with each successfully fetched StatusSnapshot
        on_terminal: Called at most once per job, for passed/failed only
        on_transport_error: Called with (job_id, StatusFetchError) on a failed fetch
    """

    on_update: Callable[..., Any] = _noop
    on_terminal: Callable[..., Any] = _noop
    on_transport_error: Callable[..., Any] = _noop

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }
