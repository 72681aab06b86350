"""
PTCG Data - Reference Dataset Client

Fetches the flat-file Pokemon reference dataset (types, moves, abilities,
species). Each file is a single JSON array downloaded wholesale.
"""

from __future__ import annotations

from typing import Any

import structlog

from ptcg_data.config import settings
from ptcg_data.exceptions import RemoteFetchError
from ptcg_data.pipeline.http import JsonApiClient

logger = structlog.get_logger(__name__)

TYPES_FILE = "types.json"
MOVES_FILE = "moves.json"
ABILITIES_FILE = "abilities.json"
SPECIES_FILE = "pokemon.json"


class ReferenceDatasetClient(JsonApiClient):
    """
    Async client for the flat reference dataset.

    Usage:
        async with ReferenceDatasetClient() as client:
            moves = await client.fetch_moves()
    """

    source = "reference_dataset"

    def __init__(self, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(base_url or settings.REFERENCE_DATASET_URL, **kwargs)

    async def fetch_file(self, filename: str) -> list[dict[str, Any]]:
        """
        Download one dataset file and check that it is a JSON array.

        Raises:
            RemoteFetchError: on any transport, status or shape failure.
        """
        logger.info("reference_dataset_fetch", file=filename)
        payload = await self._get_json(f"/{filename}")
        if not isinstance(payload, list):
            raise RemoteFetchError(
                f"{self._base_url}/{filename}",
                f"expected a JSON array, got {type(payload).__name__}",
            )
        logger.info("reference_dataset_fetch_complete", file=filename, records=len(payload))
        return payload

    async def fetch_types(self) -> list[dict[str, Any]]:
        return await self.fetch_file(TYPES_FILE)

    async def fetch_moves(self) -> list[dict[str, Any]]:
        return await self.fetch_file(MOVES_FILE)

    async def fetch_abilities(self) -> list[dict[str, Any]]:
        return await self.fetch_file(ABILITIES_FILE)

    async def fetch_species(self) -> list[dict[str, Any]]:
        return await self.fetch_file(SPECIES_FILE)
