from typing import Protocol

from execmon.core.models.status import StatusSnapshot


class StatusFetcherPort(Protocol):
    """The single capability the pollers consume.

    Implementations resolve to the current snapshot of one execution. Any
    exception raised is treated as a transport failure. Timeouts, retries and
    authentication are the implementation's concern, not the pollers'.
    """

    async def fetch_status(self, job_id: str) -> StatusSnapshot:  # pragma: no cover - protocol
        ...
