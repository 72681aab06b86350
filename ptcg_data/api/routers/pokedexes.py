"""
Pokedex endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data.api.dependencies import get_session_factory
from ptcg_data.exceptions import NotFoundError
from ptcg_data.query import reference as reference_queries

router = APIRouter(prefix="/v2/pokedexes")


def parse_pokedex_id(value: str) -> int | None:
    """Path ids are matched as integers; anything else names no pokedex."""
    try:
        return int(value.strip())
    except ValueError:
        return None


@router.get("")
async def get_pokedexes(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await reference_queries.list_pokedexes(session_factory)
    return {"pokedexes": rows, "count": len(rows)}


@router.get("/{pokedex_id}")
async def get_pokedex(
    pokedex_id: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    parsed = parse_pokedex_id(pokedex_id)
    if parsed is None:
        raise NotFoundError("Pokedex", pokedex_id)
    return await reference_queries.get_pokedex(session_factory, parsed)


@router.get("/{pokedex_id}/entries")
async def get_pokedex_entries(
    pokedex_id: str,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    parsed = parse_pokedex_id(pokedex_id)
    rows = [] if parsed is None else await reference_queries.list_pokedex_entries(
        session_factory, parsed
    )
    return {"entries": rows, "count": len(rows), "pokedexId": parsed}
