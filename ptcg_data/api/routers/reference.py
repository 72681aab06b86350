"""
Pokemon reference data endpoints (types, moves, abilities, species).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data.api.dependencies import get_session_factory
from ptcg_data.query import reference as reference_queries

router = APIRouter(prefix="/v2/pokemon")


@router.get("/types")
async def get_types(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await reference_queries.list_types(session_factory)
    return {"types": rows, "count": len(rows)}


@router.get("/moves")
async def get_moves(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await reference_queries.list_moves(session_factory)
    return {"moves": rows, "count": len(rows)}


@router.get("/abilities")
async def get_abilities(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await reference_queries.list_abilities(session_factory)
    return {"abilities": rows, "count": len(rows)}


@router.get("/species")
async def get_species(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await reference_queries.list_species(session_factory)
    return {"species": rows, "count": len(rows)}
