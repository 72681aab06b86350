"""
PTCG Data - Row to Record Transform

Inverse of pipeline/normalize.py: rebuilds API records (camelCase keys,
decoded list/map blobs) from stored rows. Card and set rows also re-emit their
`extras` sideband so unrecognized source keys survive the round trip.

Card rows are expected to carry the joined set columns under the `set_*`
aliases produced by query/cards.py.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Row = Mapping[str, Any]


def decode_blob(value: Any, default: Any = None) -> Any:
    """Decode a JSON text column. Empty or undecodable values give `default`."""
    if value is None or value == "":
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.warning("transform_blob_undecodable", value=str(value)[:80])
        return default


def decode_list(value: Any) -> list[Any]:
    decoded = decode_blob(value)
    return decoded if isinstance(decoded, list) else []


def decode_map(value: Any) -> dict[str, Any]:
    decoded = decode_blob(value)
    return decoded if isinstance(decoded, dict) else {}


def _with_extras(record: dict[str, Any], extras: Any) -> dict[str, Any]:
    for key, value in decode_map(extras).items():
        record.setdefault(key, value)
    return record


def set_summary(row: Row) -> dict[str, Any] | None:
    """Nested set block on a card, built from the joined set_* columns."""
    if row.get("set_id") is None:
        return None
    return {
        "id": row["set_id"],
        "name": row.get("set_name"),
        "series": row.get("set_series"),
        "total": row.get("set_total"),
        "releaseDate": row.get("set_release_date"),
        "images": decode_map(row.get("set_images")),
        "year": row.get("set_year"),
    }


def card_row_to_record(row: Row) -> dict[str, Any]:
    record = {
        "id": row["id"],
        "name": row["name"],
        "supertype": row.get("supertype"),
        "subtypes": decode_list(row.get("subtypes")),
        "level": row.get("level"),
        "hp": row.get("hp"),
        "types": decode_list(row.get("types")),
        "evolvesFrom": row.get("evolves_from"),
        "evolvesTo": decode_list(row.get("evolves_to")),
        "abilities": decode_list(row.get("abilities")),
        "attacks": decode_list(row.get("attacks")),
        "weaknesses": decode_list(row.get("weaknesses")),
        "resistances": decode_list(row.get("resistances")),
        "retreatCost": decode_list(row.get("retreat_cost")),
        "convertedRetreatCost": row.get("converted_retreat_cost"),
        "number": row.get("number"),
        "artist": row.get("artist"),
        "rarity": row.get("rarity"),
        "flavorText": row.get("flavor_text"),
        "nationalPokedexNumbers": decode_list(row.get("national_pokedex_numbers")),
        "legalities": decode_map(row.get("legalities")),
        "images": decode_map(row.get("images")),
        "rules": decode_list(row.get("rules")),
        "set": set_summary(row),
    }
    return _with_extras(record, row.get("extras"))


def set_row_to_record(row: Row) -> dict[str, Any]:
    record = {
        "id": row["id"],
        "name": row["name"],
        "series": row.get("series"),
        "printedTotal": row.get("printed_total"),
        "total": row.get("total"),
        "legalities": decode_map(row.get("legalities")),
        "ptcgoCode": row.get("ptcgo_code"),
        "releaseDate": row.get("release_date"),
        "updatedAt": row.get("updated_at"),
        "images": decode_map(row.get("images")),
        "year": row.get("year"),
    }
    return _with_extras(record, row.get("extras"))


def type_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "color": row.get("color"),
        "isCanonical": bool(row.get("is_canonical")),
    }


def move_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "psName": row.get("ps_name"),
        "generation": row.get("generation"),
        "desc": row.get("description"),
        "shortDesc": row.get("short_desc"),
        "type": row.get("type"),
        "power": row.get("power"),
        "accuracy": row.get("accuracy"),
        "pp": row.get("pp"),
        "category": row.get("category"),
        "priority": row.get("priority"),
        "isZ": bool(row.get("is_z")),
        "isGmax": bool(row.get("is_gmax")),
    }


def ability_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "desc": row.get("description"),
        "shortDesc": row.get("short_desc"),
        "generation": row.get("generation"),
    }


def species_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "types": decode_list(row.get("types")),
        "abilities": decode_list(row.get("abilities")),
        "hiddenAbilities": decode_list(row.get("hidden_abilities")),
        "baseStats": decode_map(row.get("base_stats")),
        "height": row.get("height"),
        "weight": row.get("weight"),
        "generation": row.get("generation"),
        "evolutionChain": decode_map(row.get("evolution_chain")),
    }


def pokedex_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "descriptions": decode_list(row.get("descriptions")),
        "names": decode_list(row.get("names")),
        "isMainSeries": bool(row.get("is_main_series")),
        "region": row.get("region"),
    }


def pokedex_entry_row_to_record(row: Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "pokedexId": row["pokedex_id"],
        "entryNumber": row["entry_number"],
        "pokemonSpeciesId": row["pokemon_species_id"],
        "pokemonSpeciesName": row.get("pokemon_species_name"),
    }
