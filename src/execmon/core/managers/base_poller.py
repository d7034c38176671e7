"""Shared machinery for the execution pollers.

Every poller owns exactly one asyncio task (its timer) and a generation
counter. Each poll loop captures the generation it was started with and
re-checks it before touching any state, so a fetch that resolves after
`stop()`, `reset()` or `shutdown()` is discarded instead of resurrecting
stale state.

In-flight fetches are never aborted: a fetch runs in its own task behind
`asyncio.shield`, so cancelling the timer only detaches the poller from it.
"""

from __future__ import annotations

import asyncio
import inspect
from enum import StrEnum
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from execmon.core.config import PollerConfig, PollerHooks
from execmon.core.exceptions import InvalidStatusPayloadError, StatusFetchError
from execmon.core.interfaces.observers import ExecutionObserver
from execmon.core.interfaces.status_fetcher import StatusFetcherPort
from execmon.core.models.status import StatusSnapshot
from execmon.core.settings import logger


class PollerState(StrEnum):
    idle = "idle"
    polling = "polling"
    stopped = "stopped"


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def _retrieve_exception(task: asyncio.Future) -> None:
    # Detached fetches may fail after the poller stopped listening
    if not task.cancelled():
        task.exception()


class BasePoller:
    """Base class holding the timer task, liveness generation and hook dispatch.

    Attributes:
        config: Immutable poll interval / auto-stop configuration
    """

    def __init__(
        self,
        fetcher: StatusFetcherPort,
        config: Optional[PollerConfig] = None,
        hooks: Optional[PollerHooks] = None,
        observers: Optional[Iterable[ExecutionObserver]] = None,
    ) -> None:
        # Accept a port implementation or a bare async callable
        self._fetch_status = getattr(fetcher, "fetch_status", fetcher)
        self.config = config or PollerConfig()
        self._hooks = hooks or PollerHooks()
        self._observers: List[ExecutionObserver] = list(observers or [])
        self._state = PollerState.idle
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    # ---------------- Lifecycle -----------------
    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def is_polling(self) -> bool:
        return self._state is PollerState.polling

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_live(self, generation: int) -> bool:
        return (
            not self._closed
            and generation == self._generation
            and self._state is PollerState.polling
        )

    def _spawn(self, coro_factory) -> Optional[int]:
        """Start a fresh poll loop and return its generation.

        `coro_factory` receives the generation and returns the loop coroutine.
        Returns None when no event loop is running.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("[poller:start] no running event loop; polling not started")
            self._state = PollerState.stopped
            return None
        self._generation += 1
        generation = self._generation
        self._state = PollerState.polling
        self._task = loop.create_task(coro_factory(generation))
        return generation

    def _stop_timer(self) -> None:
        """Invalidate the current generation and release the timer task."""
        self._generation += 1
        self._state = PollerState.stopped
        task, self._task = self._task, None
        # A hook calling stop() runs inside the loop task; it exits on its own
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def shutdown(self) -> None:
        """Stop polling and wait for the timer task to finish (teardown)."""
        self._closed = True
        task = self._task
        self.stop()
        if task is not None and task is not _current_task():
            await asyncio.gather(task, return_exceptions=True)

    def stop(self) -> None:  # pragma: no cover - overridden
        self._stop_timer()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
        return False

    # ---------------- Fetching -----------------
    async def _fetch(self, job_id: str) -> StatusSnapshot:
        """Fetch and validate one snapshot.

        Raises StatusFetchError for every transport or payload failure.
        """
        try:
            pending = self._fetch_status(job_id)
            if inspect.isawaitable(pending):
                fetch = asyncio.ensure_future(pending)
                fetch.add_done_callback(_retrieve_exception)
                result = await asyncio.shield(fetch)
            else:
                result = pending
        except asyncio.CancelledError:
            task = _current_task()
            if task is not None and task.cancelling():
                raise
            # the fetch itself was cancelled, not the poller
            raise StatusFetchError("Status fetch was cancelled", job_id=job_id)
        except Exception as exc:
            raise StatusFetchError.wrap(job_id, exc)

        if isinstance(result, StatusSnapshot):
            return result
        try:
            return StatusSnapshot.model_validate(result)
        except ValidationError as exc:
            raise InvalidStatusPayloadError(job_id, diagnostic=str(exc)) from exc

    # ---------------- Notification -----------------
    async def _notify(self, event: str, *args: Any) -> None:
        """Invoke the configured hook, then every observer, for `event`.

        Failures are logged and swallowed so a misbehaving callback can never
        break the poll loop.
        """
        callbacks = [getattr(self._hooks, event)]
        callbacks.extend(getattr(o, event, None) for o in self._observers)
        for callback in callbacks:
            if callback is None:
                continue
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(
                    f"[poller:hook] {event} failed "
                    f"callback={getattr(callback, '__qualname__', type(callback).__name__)} "
                    f"error={exc}"
                )
