"""StatusFetcherPort implementation backed by the execution REST API.

GET {base_url}/executions/{job_id} answers either the execution object or
an envelope `{"data": {...}}`; both shapes are accepted.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

from pydantic import ValidationError

from execmon.core.exceptions import InvalidStatusPayloadError, StatusFetchError
from execmon.core.interfaces.http_client import HttpClientPort
from execmon.core.models.status import StatusSnapshot
from execmon.core.settings import logger

DEFAULT_STATUS_PATH = "/executions/{job_id}"


class HttpStatusFetcher:
    def __init__(
        self,
        http_client: HttpClientPort,
        base_url: str,
        path_template: str = DEFAULT_STATUS_PATH,
        timeout: Optional[float] = None,
    ):
        self._http = http_client
        self._base_url = str(base_url).rstrip("/")
        self._path_template = path_template
        self._timeout = timeout

    def status_url(self, job_id: str) -> str:
        path = self._path_template.format(job_id=quote(job_id, safe=""))
        return f"{self._base_url}/{path.lstrip('/')}"

    async def fetch_status(self, job_id: str) -> StatusSnapshot:
        url = self.status_url(job_id)
        logger.debug(f"[fetcher:http] GET {url}")
        try:
            body = await self._http.get(url, timeout=self._timeout)
        except StatusFetchError as exc:
            exc.job_id = job_id
            raise
        return self._parse(job_id, body)

    def _parse(self, job_id: str, body: Any) -> StatusSnapshot:
        payload = _unwrap(body)
        if not isinstance(payload, dict):
            raise InvalidStatusPayloadError(
                job_id, diagnostic=f"expected an object, got {type(payload).__name__}"
            )
        # Some responses omit the id inside the envelope
        payload.setdefault("id", job_id)
        try:
            return StatusSnapshot.model_validate(payload)
        except ValidationError as exc:
            logger.debug(f"[fetcher:http] invalid payload job_id={job_id} err={exc}")
            raise InvalidStatusPayloadError(job_id, diagnostic=str(exc)) from exc


def _unwrap(body: Any) -> Any:
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return dict(body["data"])
    return dict(body) if isinstance(body, dict) else body
