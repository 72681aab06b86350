"""
PTCG Data - Reference & Pokedex Queries

Read-only listings over the external reference tables. Types, moves and
abilities are ordered by name; species and pokedexes by id; pokedex entries by
entry number.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data.db import fetch_rows
from ptcg_data.exceptions import NotFoundError
from ptcg_data.query.transform import (
    ability_row_to_record,
    move_row_to_record,
    pokedex_entry_row_to_record,
    pokedex_row_to_record,
    species_row_to_record,
    type_row_to_record,
)

logger = structlog.get_logger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


async def list_types(session_factory: SessionFactory) -> list[dict[str, Any]]:
    rows = await fetch_rows(session_factory, "SELECT * FROM pokemon_types ORDER BY name, id")
    return [type_row_to_record(r) for r in rows]


async def list_moves(session_factory: SessionFactory) -> list[dict[str, Any]]:
    rows = await fetch_rows(session_factory, "SELECT * FROM pokemon_moves ORDER BY name, id")
    return [move_row_to_record(r) for r in rows]


async def list_abilities(session_factory: SessionFactory) -> list[dict[str, Any]]:
    rows = await fetch_rows(session_factory, "SELECT * FROM pokemon_abilities ORDER BY name, id")
    return [ability_row_to_record(r) for r in rows]


async def list_species(session_factory: SessionFactory) -> list[dict[str, Any]]:
    rows = await fetch_rows(session_factory, "SELECT * FROM pokemon_species ORDER BY id")
    return [species_row_to_record(r) for r in rows]


async def list_pokedexes(session_factory: SessionFactory) -> list[dict[str, Any]]:
    rows = await fetch_rows(session_factory, "SELECT * FROM pokedexes ORDER BY id")
    return [pokedex_row_to_record(r) for r in rows]


async def list_pokedex_entries(
    session_factory: SessionFactory, pokedex_id: int
) -> list[dict[str, Any]]:
    """Entries of one pokedex by entry number. Unknown ids give an empty list."""
    rows = await fetch_rows(
        session_factory,
        "SELECT * FROM pokedex_entries WHERE pokedex_id = :pokedex_id ORDER BY entry_number",
        {"pokedex_id": pokedex_id},
    )
    return [pokedex_entry_row_to_record(r) for r in rows]


async def get_pokedex(session_factory: SessionFactory, pokedex_id: int) -> dict[str, Any]:
    """
    One pokedex with its ordered entries and their count.

    Raises:
        NotFoundError: when no pokedex has this id.
    """
    rows = await fetch_rows(
        session_factory,
        "SELECT * FROM pokedexes WHERE id = :pokedex_id",
        {"pokedex_id": pokedex_id},
    )
    if not rows:
        logger.info("pokedex_not_found", pokedex_id=pokedex_id)
        raise NotFoundError("Pokedex", pokedex_id)

    entries = await list_pokedex_entries(session_factory, pokedex_id)
    record = pokedex_row_to_record(rows[0])
    record["entries"] = entries
    record["entryCount"] = len(entries)
    return record
