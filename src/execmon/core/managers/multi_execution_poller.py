"""MultiExecutionPoller: tracks a changing set of executions on one shared timer.

Each tick fans out one fetch per tracked execution concurrently (a "wave")
and merges every result into a keyed view as soon as it settles. The next
wave is scheduled only after the previous one fully settled, so at most one
wave is ever in flight.

The merged mappings are replaced copy-on-write per id: a reader holding the
mapping returned by `snapshots` keeps a consistent view while later waves
land.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set

from execmon.core.config import PollerConfig, PollerHooks
from execmon.core.exceptions import StatusFetchError
from execmon.core.interfaces.observers import ExecutionObserver
from execmon.core.interfaces.status_fetcher import StatusFetcherPort
from execmon.core.logging_config import job_id_var
from execmon.core.managers.base_poller import BasePoller, PollerState
from execmon.core.models.status import StatusSnapshot
from execmon.core.settings import logger
from execmon.core.utils.formatting import describe_snapshot


class MultiExecutionPoller(BasePoller):
    """Polls every execution in a set of ids and exposes the merged view.

    The id set is a value: assigning the same members again (in any order,
    any container) changes nothing. Ids added while polling are picked up by
    the next wave; removed ids are no longer fetched but keep their last
    snapshot until `clear()`.

    With `auto_stop_on_terminal`, executions that already reached a terminal
    state are not fetched again, and the shared timer stops once every
    tracked execution is terminal.
    """

    def __init__(
        self,
        fetcher: StatusFetcherPort,
        job_ids: Iterable[str] = (),
        config: Optional[PollerConfig] = None,
        hooks: Optional[PollerHooks] = None,
        observers: Optional[Iterable[ExecutionObserver]] = None,
    ) -> None:
        super().__init__(fetcher, config=config, hooks=hooks, observers=observers)
        self._job_ids: FrozenSet[str] = _normalize_ids(job_ids)
        self._snapshots: Dict[str, StatusSnapshot] = {}
        self._errors: Dict[str, StatusFetchError] = {}
        self._terminal_notified: Set[str] = set()
        self._started = False

    # ---------------- Read access -----------------
    @property
    def job_ids(self) -> FrozenSet[str]:
        return self._job_ids

    @property
    def snapshots(self) -> Mapping[str, StatusSnapshot]:
        return MappingProxyType(self._snapshots)

    @property
    def errors(self) -> Mapping[str, StatusFetchError]:
        return MappingProxyType(self._errors)

    @property
    def all_terminal(self) -> bool:
        """True when every tracked execution has a terminal snapshot."""
        if not self._job_ids:
            return False
        return all(
            job_id in self._snapshots
            and self._snapshots[job_id].lifecycle_state.is_terminal
            for job_id in self._job_ids
        )

    # ---------------- Caller operations -----------------
    def start(self) -> None:
        """Begin polling the current id set (no-op while already polling)."""
        if self._closed:
            logger.warning("[multi:start] poller already shut down")
            return
        self._started = True
        self._ensure_loop()

    def set_job_ids(self, job_ids: Iterable[str]) -> None:
        """Replace the tracked id set; identity is by content."""
        new_ids = _normalize_ids(job_ids)
        if new_ids == self._job_ids:
            return
        added = new_ids - self._job_ids
        removed = self._job_ids - new_ids
        self._job_ids = new_ids
        logger.debug(
            f"[multi:ids] tracking={len(new_ids)} added={sorted(added)} removed={sorted(removed)}"
        )
        if not self._started or self._closed:
            return
        if not new_ids:
            self._stop_timer()
            return
        self._ensure_loop()

    def stop(self) -> None:
        """Stop the shared timer. Idempotent; snapshots are kept."""
        if self.is_polling:
            logger.debug(f"[multi:stop] stopping tracking={len(self._job_ids)}")
        self._started = False
        self._stop_timer()

    def clear(self, job_id: Optional[str] = None) -> None:
        """Drop retained state for `job_id`, or for every untracked id."""
        if job_id is not None:
            targets = {job_id}
        else:
            targets = (set(self._snapshots) | set(self._errors)) - self._job_ids
        if not targets:
            return
        self._snapshots = {k: v for k, v in self._snapshots.items() if k not in targets}
        self._errors = {k: v for k, v in self._errors.items() if k not in targets}
        self._terminal_notified -= targets

    # ---------------- Polling -----------------
    def _ensure_loop(self) -> None:
        if self.is_polling:
            return
        if not self._job_ids:
            self._state = PollerState.stopped
            return
        if self.config.auto_stop_on_terminal and self.all_terminal:
            logger.debug("[multi:start] every execution already terminal; not polling")
            self._state = PollerState.stopped
            return
        if self._spawn(self._poll_loop) is not None:
            logger.debug(
                f"[multi:start] polling tracking={len(self._job_ids)} "
                f"interval={self.config.interval}s auto_stop={self.config.auto_stop_on_terminal}"
            )

    def _wave_ids(self) -> list[str]:
        ids = self._job_ids
        if self.config.auto_stop_on_terminal:
            ids = {
                job_id for job_id in ids
                if not (
                    job_id in self._snapshots
                    and self._snapshots[job_id].lifecycle_state.is_terminal
                )
            }
        return sorted(ids)

    async def _poll_loop(self, generation: int) -> None:
        while self._is_live(generation):
            if not self._job_ids:
                logger.debug("[multi:tick] no executions tracked; stopping")
                self._stop_timer()
                return

            wave = self._wave_ids()
            if wave:
                await asyncio.gather(*(self._fetch_one(generation, job_id) for job_id in wave))
            if not self._is_live(generation):
                return

            if self.config.auto_stop_on_terminal and self.all_terminal:
                logger.info(f"[multi:tick] all {len(self._job_ids)} executions terminal; stopping")
                self._stop_timer()
                return

            await asyncio.sleep(self.config.interval)

    def _accepts(self, generation: int, job_id: str) -> bool:
        return self._is_live(generation) and job_id in self._job_ids

    async def _fetch_one(self, generation: int, job_id: str) -> None:
        job_id_var.set(job_id)
        try:
            snapshot = await self._fetch(job_id)
        except StatusFetchError as exc:
            if not self._accepts(generation, job_id):
                logger.debug(f"[multi:fetch] discarding late error job_id={job_id}")
                return
            self._errors = {**self._errors, job_id: exc}
            logger.warning(f"[multi:fetch] fetch failed job_id={job_id} err={exc}")
            await self._notify("on_transport_error", job_id, exc)
            return

        if not self._accepts(generation, job_id):
            logger.debug(f"[multi:fetch] discarding late snapshot job_id={job_id}")
            return

        self._snapshots = {**self._snapshots, job_id: snapshot}
        if job_id in self._errors:
            self._errors = {k: v for k, v in self._errors.items() if k != job_id}
        logger.debug(f"[multi:fetch] job_id={job_id} {describe_snapshot(snapshot)}")
        await self._notify("on_update", snapshot)

        if not self._accepts(generation, job_id):
            return
        if snapshot.lifecycle_state.is_completion and job_id not in self._terminal_notified:
            self._terminal_notified.add(job_id)
            logger.info(f"[multi:terminal] job_id={job_id} {describe_snapshot(snapshot)}")
            await self._notify("on_terminal", snapshot)


def _normalize_ids(job_ids: Iterable[str]) -> FrozenSet[str]:
    if isinstance(job_ids, str):
        job_ids = [job_ids]
    return frozenset(job_id for job_id in job_ids if job_id)
