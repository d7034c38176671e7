from typing import Optional

from execmon.core.models.status import StatusSnapshot


def format_duration(ms: Optional[int]) -> str:
    """Human readable duration: 850ms, 1.5s, 2m 5s."""
    if ms is None:
        return "-"
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    mins = ms // 60000
    # half-up, and 59.5s and above carry into the next minute
    secs = int((ms % 60000) / 1000 + 0.5)
    if secs == 60:
        mins, secs = mins + 1, 0
    return f"{mins}m {secs}s"


def describe_snapshot(snapshot: StatusSnapshot) -> str:
    """One-line status description used in log messages."""
    state = snapshot.lifecycle_state.value
    if snapshot.progress is not None and not snapshot.lifecycle_state.is_terminal:
        progress = snapshot.progress
        label = f" ({progress.current_label})" if progress.current_label else ""
        return f"{state} {progress.current}/{progress.total}{label}"
    if snapshot.summary is not None:
        s = snapshot.summary
        return (
            f"{state} total={s.total} passed={s.passed} failed={s.failed} "
            f"skipped={s.skipped} duration={format_duration(s.duration_ms)}"
        )
    return state
