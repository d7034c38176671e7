# factory.py lives at the outermost layer (not in core)
# Instantiates the concrete adapters
# Wires dependencies together

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from execmon.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from execmon.adapters.http_status_fetcher import HttpStatusFetcher
from execmon.core.config import PollerConfig, PollerHooks
from execmon.core.interfaces.observers import ExecutionObserver
from execmon.core.logging_config import configure_logging
from execmon.core.managers.execution_poller import ExecutionPoller
from execmon.core.managers.multi_execution_poller import MultiExecutionPoller
from execmon.core.settings import ExecmonSettings, app_settings, logger


def bootstrap(settings: Optional[ExecmonSettings] = None, show_settings: bool = False) -> ExecmonSettings:
    """Central logging configuration; call once from the embedding application."""
    settings = settings or app_settings
    configure_logging(settings.EXECMON_LOG_LEVEL)
    if show_settings:
        settings.print_settings(logger)
    return settings


@asynccontextmanager
async def http_status_fetcher(
    settings: Optional[ExecmonSettings] = None,
) -> AsyncIterator[HttpStatusFetcher]:
    """Yield an HTTP-backed fetcher whose session lives as long as the block."""
    settings = settings or app_settings
    async with AioHttpClientAdapter(default_total=settings.EXECMON_HTTP_TIMEOUT) as client:
        yield HttpStatusFetcher(
            client,
            base_url=str(settings.EXECMON_API_BASE_URL),
            path_template=settings.EXECMON_STATUS_PATH_TEMPLATE,
        )


def create_execution_poller(
    fetcher,
    settings: Optional[ExecmonSettings] = None,
    hooks: Optional[PollerHooks] = None,
    observers: Optional[Iterable[ExecutionObserver]] = None,
) -> ExecutionPoller:
    config = PollerConfig.from_app_settings(settings or app_settings)
    return ExecutionPoller(fetcher, config=config, hooks=hooks, observers=observers)


def create_multi_execution_poller(
    fetcher,
    job_ids: Iterable[str] = (),
    settings: Optional[ExecmonSettings] = None,
    hooks: Optional[PollerHooks] = None,
    observers: Optional[Iterable[ExecutionObserver]] = None,
) -> MultiExecutionPoller:
    config = PollerConfig.from_app_settings(settings or app_settings)
    return MultiExecutionPoller(
        fetcher, job_ids=job_ids, config=config, hooks=hooks, observers=observers
    )
