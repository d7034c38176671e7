"""Observer protocol for execution status events.

Observers decouple side effects (history recording, rendering, notifications)
from the polling loops. The pollers call every registered observer after the
hooks configured for the registration.
"""

from typing import Protocol

from execmon.core.exceptions import StatusFetchError
from execmon.core.models.status import StatusSnapshot


class ExecutionObserver(Protocol):
    """Observer protocol for execution status events.

    - on_update: after every successful fetch, in fetch-completion order
    - on_terminal: at most once per job, only for passed/failed
    - on_transport_error: after a failed fetch; polling continues

    Methods may be plain functions or coroutines. Exceptions raised by an
    observer are logged and never interrupt polling.
    """

    def on_update(self, snapshot: StatusSnapshot) -> None:
        """Called with each freshly fetched snapshot."""
        ...

    def on_terminal(self, snapshot: StatusSnapshot) -> None:
        """Called once when an execution passes or fails."""
        ...

    def on_transport_error(self, job_id: str, error: StatusFetchError) -> None:
        """Called when fetching the status of `job_id` failed."""
        ...
