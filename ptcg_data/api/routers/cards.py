"""
Card, set and grouped-pokemon endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data.api.dependencies import get_session_factory
from ptcg_data.query import cards as card_queries

router = APIRouter(prefix="/v2")


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated query value; tokens are trimmed, empties dropped."""
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


@router.get("/cards")
async def get_cards(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await card_queries.list_cards(session_factory)
    return {"cards": rows}


@router.get("/cards/filter")
async def filter_cards(
    types: str | None = Query(default=None),
    subtypes: str | None = Query(default=None),
    years: str | None = Query(default=None),
    sets: str | None = Query(default=None),
    rarities: str | None = Query(default=None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    card_filter = card_queries.CardFilter(
        types=parse_csv(types),
        subtypes=parse_csv(subtypes),
        years=parse_csv(years),
        sets=parse_csv(sets),
        rarities=parse_csv(rarities),
    )
    rows = await card_queries.list_cards(session_factory, card_filter)
    return {"cards": rows, "count": len(rows), "filters": card_filter.to_dict()}


@router.get("/sets")
async def get_sets(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    rows = await card_queries.list_sets(session_factory)
    return {"sets": rows}


@router.get("/pokemon")
async def get_pokemon(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> dict:
    groups = await card_queries.group_cards_by_reference_number(session_factory)
    return {"pokemon": groups, "count": len(groups)}
