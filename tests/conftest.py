"""Shared test helpers: a scripted status fetcher and polling utilities."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from execmon.core.models.status import LifecycleState, StatusSnapshot


def snap(job_id: str, state: str, **fields: Any) -> StatusSnapshot:
    return StatusSnapshot(id=job_id, lifecycle_state=LifecycleState(state), **fields)


class ScriptedFetcher:
    """Fetch capability answering from a per-job script.

    Script items are consumed in order; the last one repeats. An item may be
    a StatusSnapshot (or raw dict), an exception instance (raised) or an
    asyncio.Future (awaited, then treated as an item itself).
    """

    def __init__(self, script: Optional[Dict[str, List[Any]]] = None):
        self.script: Dict[str, List[Any]] = {k: list(v) for k, v in (script or {}).items()}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def push(self, job_id: str, *items: Any) -> None:
        self.script.setdefault(job_id, []).extend(items)

    def count(self, job_id: str) -> int:
        return self.calls.count(job_id)

    async def fetch_status(self, job_id: str):
        self.calls.append(job_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            queue = self.script.get(job_id)
            if not queue:
                raise LookupError(f"no scripted status for {job_id}")
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, asyncio.Future):
                item = await item
            if isinstance(item, BaseException):
                raise item
            return item
        finally:
            self.in_flight -= 1


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.001)


async def settle(rounds: int = 20) -> None:
    """Give pending callbacks a chance to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def fetcher():
    return ScriptedFetcher()


@pytest.fixture
def future():
    """Factory for gate futures bound to the running loop."""
    def _make():
        return asyncio.get_running_loop().create_future()
    return _make
