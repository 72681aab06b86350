"""
PTCG Data - PokeAPI Pokedex Client

Two-phase fetch: one list call returns named pointers to every pokedex, then
each pointed-to pokedex is fetched individually with a fixed delay between
requests. A failed pokedex fetch is logged and skipped; only a failed list
call fails the whole batch.

Base URL: https://pokeapi.co/api/v2
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog

from ptcg_data.config import settings
from ptcg_data.exceptions import RemoteFetchError
from ptcg_data.pipeline.http import JsonApiClient

logger = structlog.get_logger(__name__)


@dataclass
class PokedexBatch:
    """Pokedex resources fetched in one run, plus the names that failed."""

    pokedexes: list[dict[str, Any]] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class PokeApiClient(JsonApiClient):
    """
    Async client for PokeAPI pokedex resources.

    Usage:
        async with PokeApiClient() as client:
            batch = await client.fetch_all_pokedexes()
    """

    source = "pokeapi"

    def __init__(
        self,
        base_url: str | None = None,
        request_delay: float | None = None,
        list_limit: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url or settings.POKEAPI_BASE_URL, **kwargs)
        self._request_delay = (
            settings.POKEDEX_REQUEST_DELAY_SECONDS if request_delay is None else request_delay
        )
        self._list_limit = settings.POKEDEX_LIST_LIMIT if list_limit is None else list_limit

    async def fetch_pokedex_list(self) -> list[dict[str, Any]]:
        """
        Fetch the pokedex pointer list: [{"name": ..., "url": ...}, ...].

        Raises:
            RemoteFetchError: when the list call fails or has no `results` array.
        """
        payload = await self._get_json("/pokedex", params={"limit": self._list_limit})
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise RemoteFetchError(f"{self._base_url}/pokedex", "response has no results list")
        logger.info("pokeapi_pokedex_list_fetched", count=len(results))
        return [r for r in results if isinstance(r, dict)]

    async def fetch_pokedex(self, url: str) -> dict[str, Any]:
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise RemoteFetchError(url, "pokedex payload is not an object")
        return payload

    async def fetch_all_pokedexes(self) -> PokedexBatch:
        """
        Fetch every pokedex named by the list endpoint.

        Individual failures are recorded in `PokedexBatch.failed`.
        """
        batch = PokedexBatch()
        pointers = await self.fetch_pokedex_list()

        for index, pointer in enumerate(pointers):
            name = str(pointer.get("name") or pointer.get("url") or index)
            if index > 0 and self._request_delay > 0:
                await asyncio.sleep(self._request_delay)

            url = pointer.get("url")
            if not isinstance(url, str) or not url:
                logger.warning("pokeapi_pokedex_pointer_invalid", name=name)
                batch.failed.append(name)
                continue

            try:
                logger.info("pokeapi_pokedex_fetch", name=name)
                batch.pokedexes.append(await self.fetch_pokedex(url))
            except RemoteFetchError as e:
                logger.warning(
                    "pokeapi_pokedex_fetch_failed",
                    name=name,
                    error=str(e),
                    status_code=e.status_code,
                )
                batch.failed.append(name)

        logger.info(
            "pokeapi_pokedex_fetch_complete",
            fetched=len(batch.pokedexes),
            failed=len(batch.failed),
        )
        return batch
