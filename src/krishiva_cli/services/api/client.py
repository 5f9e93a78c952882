"""API client for the Krishiva backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from krishiva_cli import __version__
from krishiva_cli.models.config_models import APIConfig

logger = logging.getLogger(__name__)


class APIClient:
    """HTTP client for the Krishiva backend."""

    def __init__(
        self,
        api_config: APIConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = 1.0,
    ):
        if api_config is None:
            from krishiva_cli.services.config_service import get_config_service

            api_config = get_config_service().config.api
        self.base_url = api_config.endpoint.rstrip("/")
        self.timeout = api_config.timeout
        self.retry = api_config.retry
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"krishiva-cli/{__version__}",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retry: int | None = None,
    ) -> httpx.Response:
        """Make an HTTP request, retrying 5xx and transport errors.

        Raises:
            httpx.HTTPStatusError: On 4xx, or 5xx after the last retry
            httpx.RequestError: On transport failure after the last retry
        """
        if retry is None:
            retry = self.retry

        client = await self._get_client()
        url = path if path.startswith("/") else f"/{path}"

        last_exception: Exception | None = None
        for attempt in range(retry + 1):
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    json=json,
                    params=params,
                    headers=headers,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                # Don't retry client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    raise
                last_exception = e
            except httpx.RequestError as e:
                last_exception = e

            logger.debug("%s %s failed (attempt %d): %s", method, url, attempt + 1, last_exception)
            if attempt < retry:
                await asyncio.sleep(self.retry_backoff * 2**attempt)

        if last_exception:
            raise last_exception
        raise RuntimeError("Request failed after all retries")

    async def get(
        self, path: str, *, params: dict[str, Any] | None = None, retry: int | None = None
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, params=params, retry=retry)

    async def post(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a POST request."""
        return await self.request("POST", path, json=json, headers=headers)

    async def patch(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request("PATCH", path, json=json, headers=headers)
