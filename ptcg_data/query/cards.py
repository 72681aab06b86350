"""
PTCG Data - Card Query Engine

Listing, filtering and grouping reads over the cards table, each card enriched
with a summary of its set via LEFT JOIN. Year filtering and the year on every
set summary come from the stored sets.year column.

Filter semantics: groups are ANDed, values within a group are ORed, an empty
group is ignored. Values are compared case-sensitively and exactly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data.db import fetch_rows
from ptcg_data.pipeline.normalize import to_int
from ptcg_data.query.transform import card_row_to_record, decode_list, set_row_to_record

logger = structlog.get_logger(__name__)

_CARD_SELECT = """
    SELECT c.*,
           s.name AS set_name,
           s.series AS set_series,
           s.total AS set_total,
           s.release_date AS set_release_date,
           s.images AS set_images,
           s.year AS set_year
    FROM cards c
    LEFT JOIN sets s ON c.set_id = s.id
"""


@dataclass
class CardFilter:
    """Predicate groups for filtered card listing."""

    types: list[str] = field(default_factory=list)
    subtypes: list[str] = field(default_factory=list)
    years: list[str] = field(default_factory=list)
    sets: list[str] = field(default_factory=list)
    rarities: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any((self.types, self.subtypes, self.years, self.sets, self.rarities))

    def to_dict(self) -> dict[str, list[str]]:
        return asdict(self)


def _placeholders(prefix: str, values: list[str], params: dict[str, Any]) -> str:
    names = []
    for index, value in enumerate(values):
        name = f"{prefix}_{index}"
        params[name] = value
        names.append(f":{name}")
    return ", ".join(names)


def build_card_query(card_filter: CardFilter | None = None) -> tuple[str, dict[str, Any]]:
    """SQL and bound parameters for a (possibly filtered) card listing."""
    conditions: list[str] = []
    params: dict[str, Any] = {}

    if card_filter is not None:
        for column in ("types", "subtypes"):
            values = getattr(card_filter, column)
            if values:
                conditions.append(
                    f"EXISTS (SELECT 1 FROM json_each(c.{column}) "
                    f"WHERE json_each.value IN ({_placeholders(column, values, params)}))"
                )
        if card_filter.years:
            conditions.append(f"s.year IN ({_placeholders('years', card_filter.years, params)})")
        if card_filter.sets:
            conditions.append(f"c.set_id IN ({_placeholders('sets', card_filter.sets, params)})")
        if card_filter.rarities:
            conditions.append(
                f"c.rarity IN ({_placeholders('rarities', card_filter.rarities, params)})"
            )

    sql = _CARD_SELECT
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    sql += " ORDER BY c.id"
    return sql, params


async def list_cards(
    session_factory: async_sessionmaker[AsyncSession],
    card_filter: CardFilter | None = None,
) -> list[dict[str, Any]]:
    """
    Every card matching `card_filter` (all cards when None or empty),
    ordered by card id.

    Raises:
        QueryError: when the store read fails.
    """
    sql, params = build_card_query(card_filter)
    rows = await fetch_rows(session_factory, sql, params)
    if card_filter is not None and not card_filter.is_empty():
        logger.info("cards_filter_applied", matched=len(rows), **card_filter.to_dict())
    return [card_row_to_record(row) for row in rows]


async def list_sets(session_factory: async_sessionmaker[AsyncSession]) -> list[dict[str, Any]]:
    """All sets, oldest release first (lexicographic on the date string)."""
    rows = await fetch_rows(session_factory, "SELECT * FROM sets ORDER BY release_date, id")
    return [set_row_to_record(row) for row in rows]


async def group_cards_by_reference_number(
    session_factory: async_sessionmaker[AsyncSession],
) -> list[dict[str, Any]]:
    """
    Re-key cards by national pokedex number.

    A card listing several numbers joins every one of those groups. Each
    group's `name` is the name of the first card seen for that number, in
    card id order, even when later members are named differently.
    """
    rows = await fetch_rows(
        session_factory,
        _CARD_SELECT
        + " WHERE c.national_pokedex_numbers IS NOT NULL"
        + " AND c.national_pokedex_numbers != '[]'"
        + " ORDER BY c.id",
    )

    groups: dict[int, dict[str, Any]] = {}
    for row in rows:
        card = card_row_to_record(row)
        numbers = (to_int(n) for n in decode_list(row["national_pokedex_numbers"]))
        for number in dict.fromkeys(n for n in numbers if n is not None):
            group = groups.get(number)
            if group is None:
                group = {"nationalPokedexNumber": number, "name": card["name"], "cards": []}
                groups[number] = group
            group["cards"].append(card)

    logger.debug("cards_grouped_by_pokedex_number", groups=len(groups), cards=len(rows))
    return [groups[number] for number in sorted(groups)]
