"""Concrete observer implementations for execution status events.

This module provides ready-to-use observers that handle:
- Snapshot history recording (for diffing and incremental output display)
- Logging of lifecycle events
"""

import logging
from typing import Dict, List, Optional

from execmon.core.exceptions import StatusFetchError
from execmon.core.models.status import LifecycleState, StatusSnapshot
from execmon.core.utils.formatting import describe_snapshot


logger = logging.getLogger(__name__)

# snapshots carry the full output so far; keep a bounded window per job
DEFAULT_MAX_SNAPSHOTS = 50


class SnapshotHistoryObserver:
    """Records every fetched snapshot per execution, in arrival order.

    Fetches usually return the full output captured so far, so the history
    is what lets a consumer render only the lines that are new since the
    previous snapshot.
    """

    def __init__(self, max_snapshots: Optional[int] = DEFAULT_MAX_SNAPSHOTS):
        self._history: Dict[str, List[StatusSnapshot]] = {}
        self._max = max_snapshots

    def on_update(self, snapshot: StatusSnapshot) -> None:
        entries = self._history.setdefault(snapshot.id, [])
        entries.append(snapshot)
        if self._max is not None and len(entries) > self._max:
            del entries[: len(entries) - self._max]
        logger.debug(
            f"[observer:history] recorded job_id={snapshot.id} "
            f"state={snapshot.lifecycle_state} entries={len(entries)}"
        )

    def on_terminal(self, snapshot: StatusSnapshot) -> None:
        """Terminal snapshot already recorded in on_update."""
        pass

    def on_transport_error(self, job_id: str, error: StatusFetchError) -> None:
        """Failed fetches leave the history untouched."""
        pass

    def history(self, job_id: str) -> List[StatusSnapshot]:
        return list(self._history.get(job_id, []))

    def latest(self, job_id: str) -> Optional[StatusSnapshot]:
        entries = self._history.get(job_id)
        return entries[-1] if entries else None

    def transitions(self, job_id: str) -> List[LifecycleState]:
        """Distinct lifecycle states in the order they were first observed."""
        states: List[LifecycleState] = []
        for snapshot in self._history.get(job_id, []):
            if not states or states[-1] != snapshot.lifecycle_state:
                states.append(snapshot.lifecycle_state)
        return states

    def new_output_lines(self, job_id: str) -> List[str]:
        """Output lines added by the latest snapshot relative to the previous one."""
        entries = self._history.get(job_id, [])
        if not entries:
            return []
        latest = entries[-1].output_lines
        if len(entries) == 1:
            return list(latest)
        previous = entries[-2].output_lines
        # output is append-only; a shorter or diverging sequence means a restart
        if latest[: len(previous)] != previous:
            return list(latest)
        return list(latest[len(previous):])


class LoggingObserver:
    """Logs lifecycle events at INFO/WARNING through a standard logger."""

    def __init__(self, logger_name: str = "execmon.events"):
        self._log = logging.getLogger(logger_name)
        self._last_state: Dict[str, LifecycleState] = {}

    def on_update(self, snapshot: StatusSnapshot) -> None:
        previous = self._last_state.get(snapshot.id)
        self._last_state[snapshot.id] = snapshot.lifecycle_state
        if previous != snapshot.lifecycle_state:
            self._log.info(
                "[observer:log] job_id=%s %s -> %s",
                snapshot.id,
                previous.value if previous else None,
                snapshot.lifecycle_state.value,
            )

    def on_terminal(self, snapshot: StatusSnapshot) -> None:
        self._log.info("[observer:log] completed job_id=%s %s", snapshot.id, describe_snapshot(snapshot))

    def on_transport_error(self, job_id: str, error: StatusFetchError) -> None:
        self._log.warning("[observer:log] fetch failed job_id=%s error=%s", job_id, error)
