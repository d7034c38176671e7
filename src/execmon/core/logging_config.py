"""Central logging configuration utilities.

A single composition-root driven `configure_logging` wires separate
stdout/stderr sinks and injects the id of the execution being polled into
all log records. Adapters and core code never mutate global logging; they
only emit via `LoggingPort` or standard module loggers.

The pollers set `job_id_var` around every fetch and hook dispatch, so log
lines emitted by an injected fetch capability or a caller hook carry the
job id without the caller passing it along.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import Optional

# Job id context variable (populated by the pollers per fetch)
job_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "job_id", default="-"
)

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s job=%(job_id)s: %(message)s"


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    mapping = logging.getLevelNamesMapping()
    return mapping.get(key, logging.INFO)


class _JobIdFilter(logging.Filter):
    """Inject job id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.job_id = job_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


class _MinLevelFilter(logging.Filter):
    def __init__(self, min_level: int):
        super().__init__()
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno >= self.min_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    quiet_http: bool = True,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & job id.

    Notes
    -----
    * DEBUG/INFO go to stdout, WARNING and above to stderr.
    * `quiet_http` raises the aiohttp loggers to WARNING so per-tick request
      noise does not drown the poller's own messages.
    """
    numeric_level = coerce_level(level)
    fmt = fmt or DEFAULT_FORMAT

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Clear existing handlers to avoid duplication on reconfiguration
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(fmt)
    job_filter = _JobIdFilter()

    # stdout handler for DEBUG/INFO
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(job_filter)
    stdout_handler.setFormatter(formatter)

    # stderr handler for WARNING+
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.addFilter(_MinLevelFilter(logging.WARNING))
    stderr_handler.addFilter(job_filter)
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    if quiet_http:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    logging.getLogger("execmon").debug(
        "Logging configured level=%s quiet_http=%s", numeric_level, quiet_http
    )
