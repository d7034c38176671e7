"""Unit tests for execution observers.

Each observer is tested independently for all event methods, plus one
wiring test through a poller.
"""

import logging

import pytest

from execmon.core.config import PollerConfig
from execmon.core.exceptions import StatusFetchError
from execmon.core.managers.execution_poller import ExecutionPoller
from execmon.core.managers.observers import (
    DEFAULT_MAX_SNAPSHOTS,
    LoggingObserver,
    SnapshotHistoryObserver,
)
from execmon.core.models.status import LifecycleState

from conftest import snap, wait_until


# --- Test Fixtures ---

@pytest.fixture
def history():
    return SnapshotHistoryObserver()


# --- SnapshotHistoryObserver Tests ---

class TestSnapshotHistoryObserver:

    def test_records_in_arrival_order(self, history):
        first = snap("job-1", "pending")
        second = snap("job-1", "running")
        history.on_update(first)
        history.on_update(second)

        assert history.history("job-1") == [first, second]
        assert history.latest("job-1") is second
        assert history.history("other") == []
        assert history.latest("other") is None

    def test_transitions_collapse_repeats(self, history):
        for state in ["pending", "running", "running", "passed"]:
            history.on_update(snap("job-1", state))

        assert history.transitions("job-1") == [
            LifecycleState.pending,
            LifecycleState.running,
            LifecycleState.passed,
        ]

    def test_new_output_lines_since_previous_snapshot(self, history):
        history.on_update(snap("job-1", "running", output_lines=["a", "b"]))
        assert history.new_output_lines("job-1") == ["a", "b"]

        history.on_update(snap("job-1", "running", output_lines=["a", "b", "c", "d"]))
        assert history.new_output_lines("job-1") == ["c", "d"]

        history.on_update(snap("job-1", "running", output_lines=["a", "b", "c", "d"]))
        assert history.new_output_lines("job-1") == []

    def test_diverging_output_is_returned_whole(self, history):
        history.on_update(snap("job-1", "running", output_lines=["a", "b"]))
        history.on_update(snap("job-1", "running", output_lines=["x"]))
        assert history.new_output_lines("job-1") == ["x"]

    def test_history_is_bounded_by_default(self, history):
        for _ in range(DEFAULT_MAX_SNAPSHOTS + 5):
            history.on_update(snap("job-1", "running"))
        assert len(history.history("job-1")) == DEFAULT_MAX_SNAPSHOTS

    def test_max_snapshots_bounds_history(self):
        history = SnapshotHistoryObserver(max_snapshots=2)
        for state in ["pending", "running", "passed"]:
            history.on_update(snap("job-1", state))

        assert [s.lifecycle_state for s in history.history("job-1")] == [
            LifecycleState.running,
            LifecycleState.passed,
        ]

    def test_terminal_and_errors_do_not_record(self, history):
        history.on_terminal(snap("job-1", "passed"))
        history.on_transport_error("job-1", StatusFetchError("down"))
        assert history.history("job-1") == []

    @pytest.mark.asyncio
    async def test_wired_through_poller(self, fetcher, history):
        fetcher.push("job-1", snap("job-1", "running"), snap("job-1", "passed"))
        poller = ExecutionPoller(fetcher, config=PollerConfig(interval=0.01), observers=[history])

        poller.start("job-1")
        await wait_until(lambda: not poller.is_polling)

        assert history.transitions("job-1") == [LifecycleState.running, LifecycleState.passed]


# --- LoggingObserver Tests ---

class TestLoggingObserver:

    def test_logs_state_changes_only(self, caplog):
        observer = LoggingObserver()
        with caplog.at_level(logging.INFO, logger="execmon.events"):
            observer.on_update(snap("job-1", "running"))
            observer.on_update(snap("job-1", "running"))
            observer.on_update(snap("job-1", "passed"))

        messages = [r.getMessage() for r in caplog.records]
        assert messages == [
            "[observer:log] job_id=job-1 None -> running",
            "[observer:log] job_id=job-1 running -> passed",
        ]

    def test_logs_completion_and_errors(self, caplog):
        observer = LoggingObserver()
        with caplog.at_level(logging.INFO, logger="execmon.events"):
            observer.on_terminal(snap("job-1", "failed"))
            observer.on_transport_error("job-1", StatusFetchError("gateway timeout"))

        assert "completed job_id=job-1 failed" in caplog.records[0].getMessage()
        assert caplog.records[1].levelno == logging.WARNING
        assert "gateway timeout" in caplog.records[1].getMessage()
