"""
PTCG Data - Shared async JSON client for external reference APIs.

Retries 429, 5xx and transport errors (timeouts included) with exponential
backoff. Everything that still fails is raised as RemoteFetchError so the
migration orchestrator can skip the step and continue.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from ptcg_data.config import settings
from ptcg_data.exceptions import RemoteFetchError

logger = structlog.get_logger(__name__)


class JsonApiClient:
    """
    Base async client. Subclasses set `source` and call `_get_json()`.

    Usage:
        async with SomeClient() as client:
            payload = await client._get_json("/path")
    """

    source = "remote"

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        max_retries: int | None = None,
        base_backoff: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT_SECONDS if timeout is None else timeout
        self._max_retries = settings.HTTP_MAX_RETRIES if max_retries is None else max_retries
        self._base_backoff = (
            settings.HTTP_BASE_BACKOFF_SECONDS if base_backoff is None else base_backoff
        )
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> JsonApiClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET `path` (relative to base_url, or absolute) and decode JSON."""
        assert self._client is not None, "Client not initialized. Use 'async with'."

        url = path if path.startswith("http") else f"{self._base_url}{path}"
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._client.get(path, params=params)

                if response.status_code == 429 or response.status_code >= 500:
                    last_error = RemoteFetchError(
                        url, f"HTTP {response.status_code}", response.status_code
                    )
                    wait_time = self._base_backoff * (2 ** attempt)
                    logger.warning(
                        f"{self.source}_retryable_status",
                        status_code=response.status_code,
                        attempt=attempt + 1,
                        wait_seconds=wait_time,
                        url=url,
                    )
                    if attempt < self._max_retries:
                        await asyncio.sleep(wait_time)
                    continue

                if response.status_code >= 400:
                    raise RemoteFetchError(
                        url, f"HTTP {response.status_code}", response.status_code
                    )

                try:
                    return response.json()
                except ValueError as e:
                    raise RemoteFetchError(url, f"malformed JSON: {e}") from e

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"{self.source}_request_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    attempt=attempt + 1,
                    url=url,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._base_backoff * (2 ** attempt))
                continue

        if isinstance(last_error, RemoteFetchError):
            raise last_error
        raise RemoteFetchError(
            url, f"request failed after {self._max_retries + 1} attempts"
        ) from last_error
