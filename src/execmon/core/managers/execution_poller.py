"""ExecutionPoller: tracks the lifecycle of a single remote execution.

Responsibilities:
1. Fetch the execution status immediately on `start`, then every interval.
2. Replace the stored snapshot wholesale on every successful fetch.
3. Record transport failures without interrupting the poll cycle.
4. Detect terminal states, stop (when configured) and fire the completion
   hook at most once, for passed/failed only.
5. Stay silent after `stop()`, `reset()` or `shutdown()`, even when a slow
   fetch resolves afterwards.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from execmon.core.config import PollerConfig, PollerHooks
from execmon.core.exceptions import StatusFetchError
from execmon.core.interfaces.observers import ExecutionObserver
from execmon.core.interfaces.status_fetcher import StatusFetcherPort
from execmon.core.logging_config import job_id_var
from execmon.core.managers.base_poller import BasePoller
from execmon.core.models.status import StatusSnapshot
from execmon.core.settings import logger
from execmon.core.utils.formatting import describe_snapshot


class ExecutionPoller(BasePoller):
    """Polls one execution at a time.

    Poll ticks are serialized: the next fetch is scheduled only after the
    previous one settled, so there is never more than one outstanding fetch
    per poller.

    Example:
        async with ExecutionPoller(fetcher, PollerConfig(interval=3)) as poller:
            poller.start("job-7")
    """

    def __init__(
        self,
        fetcher: StatusFetcherPort,
        config: Optional[PollerConfig] = None,
        hooks: Optional[PollerHooks] = None,
        observers: Optional[Iterable[ExecutionObserver]] = None,
    ) -> None:
        super().__init__(fetcher, config=config, hooks=hooks, observers=observers)
        self._job_id: Optional[str] = None
        self._snapshot: Optional[StatusSnapshot] = None
        self._error: Optional[StatusFetchError] = None
        self._terminal_notified = False

    @property
    def job_id(self) -> Optional[str]:
        return self._job_id

    @property
    def snapshot(self) -> Optional[StatusSnapshot]:
        return self._snapshot

    @property
    def error(self) -> Optional[StatusFetchError]:
        return self._error

    # ---------------- Caller operations -----------------
    def start(self, job_id: str) -> None:
        """Begin a fresh registration for `job_id`.

        Any registration in progress (for this or another id) is stopped
        first. Stored snapshot and error are cleared.
        """
        if not job_id:
            logger.warning("[poller:start] ignoring start without execution id")
            return
        if self._closed:
            logger.warning(f"[poller:start] poller already shut down job_id={job_id}")
            return

        if self.is_polling:
            logger.debug(f"[poller:start] replacing registration old={self._job_id} new={job_id}")
        self._stop_timer()

        self._job_id = job_id
        self._snapshot = None
        self._error = None
        self._terminal_notified = False

        generation = self._spawn(lambda gen: self._poll_loop(gen, job_id))
        if generation is not None:
            logger.debug(
                f"[poller:start] polling job_id={job_id} interval={self.config.interval}s "
                f"auto_stop={self.config.auto_stop_on_terminal}"
            )

    def stop(self) -> None:
        """Stop polling and forget the execution id. Idempotent."""
        if self.is_polling:
            logger.debug(f"[poller:stop] stopping job_id={self._job_id}")
        self._stop_timer()
        self._job_id = None

    def reset(self) -> None:
        """Stop polling and clear the stored snapshot and error."""
        self.stop()
        self._snapshot = None
        self._error = None

    # ---------------- Polling -----------------
    async def _poll_loop(self, generation: int, job_id: str) -> None:
        """Fetch, apply, sleep; until stopped or a terminal state ends it."""
        job_id_var.set(job_id)
        while self._is_live(generation):
            await self._tick(generation, job_id)
            if not self._is_live(generation):
                return
            await asyncio.sleep(self.config.interval)

    async def _tick(self, generation: int, job_id: str) -> None:
        try:
            snapshot = await self._fetch(job_id)
        except StatusFetchError as exc:
            if not self._is_live(generation):
                logger.debug(f"[poller:tick] discarding late error job_id={job_id}")
                return
            self._error = exc
            logger.warning(f"[poller:tick] fetch failed job_id={job_id} err={exc}")
            await self._notify("on_transport_error", job_id, exc)
            return

        if not self._is_live(generation):
            logger.debug(f"[poller:tick] discarding late snapshot job_id={job_id}")
            return

        self._snapshot = snapshot
        self._error = None
        logger.debug(f"[poller:tick] job_id={job_id} {describe_snapshot(snapshot)}")
        await self._notify("on_update", snapshot)

        # on_update may have stopped or restarted this poller
        if not self._is_live(generation) or not snapshot.lifecycle_state.is_terminal:
            return

        if self.config.auto_stop_on_terminal:
            logger.debug(
                f"[poller:tick] terminal state reached job_id={job_id} "
                f"status={snapshot.lifecycle_state}; stopping"
            )
            self._stop_timer()

        if snapshot.lifecycle_state.is_completion and not self._terminal_notified:
            self._terminal_notified = True
            logger.info(f"[poller:terminal] job_id={job_id} {describe_snapshot(snapshot)}")
            await self._notify("on_terminal", snapshot)
