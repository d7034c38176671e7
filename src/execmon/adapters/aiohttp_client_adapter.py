# execmon/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from execmon.core.interfaces.http_client import HttpClientPort
from execmon.core.exceptions import HttpClientNotInitializedError, StatusFetchError
from execmon.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, default_total: float = 10.0, headers: Optional[Dict[str, str]] = None):
        self._session: Optional[aiohttp.ClientSession] = None
        self._headers = dict(headers or {})
        # Default client timeout configuration for individual requests.
        # Callers only pass a total; connect/read limits stay adapter defaults.
        self._default_total: float = default_total
        self._default_sock_read: float = 10.0
        self._default_sock_connect: float = 5.0
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession(headers=self._headers)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    async def get(self, url: str, timeout: float | None = None) -> Dict[str, Any]:
        if self._session is None:
            raise HttpClientNotInitializedError()
        if timeout is None:
            client_timeout = self._default_client_timeout
        else:
            client_timeout = aiohttp.ClientTimeout(
                total=timeout,
                sock_read=self._default_sock_read,
                sock_connect=self._default_sock_connect,
            )

        return await self._fetch_json(url, timeout=client_timeout)

    async def _fetch_json(self, url: str, **kwargs) -> Dict[str, Any]:
        """
        Fetch JSON from URL.

        Translates HTTP/network errors into StatusFetchError so the pollers can
        record them as transport failures.
        """
        if self._session is None:
            raise HttpClientNotInitializedError()

        try:
            async with self._session.get(url, **kwargs) as response:
                # HTTP errors win over body parsing
                response.raise_for_status()
                try:
                    return await response.json()
                except aiohttp.ContentTypeError:
                    response_text = await response.text()
                    logger.error(
                        "Invalid JSON response from execution API. URL: %s, Content: %s",
                        url,
                        response_text[:500],
                    )
                    raise StatusFetchError(
                        message="The response from the execution API was not valid JSON",
                        diagnostic=response_text[:100],
                        upstream_status=502,
                    )

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting execution API. URL: %s", url)
            raise StatusFetchError(
                message="The request to the execution API timed out.",
                diagnostic=url,
                upstream_status=504,
            )

        except aiohttp.ClientResponseError as client_response_error:
            logger.error(
                "HTTP error when requesting execution API. URL: %s, Status: %s, Error: %s",
                url,
                client_response_error.status,
                str(client_response_error),
            )
            raise StatusFetchError(
                message=f"The execution API returned an HTTP error: {client_response_error.status}",
                diagnostic=client_response_error.message,
                upstream_status=client_response_error.status,
            )

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting execution API. URL: %s, Error: %s",
                url,
                str(client_error),
            )
            raise StatusFetchError(
                message="There was a connection error with the execution API.",
                diagnostic=str(client_error),
                upstream_status=502,
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
