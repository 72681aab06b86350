"""
PTCG Data - Record Normalizer

Turns one raw source record into a flat row whose keys are the table's column
names, ready for a bulk upsert. Normalization is total: missing or mistyped
fields fall back to None / [] / {} instead of raising. The one exception is a
pokedex entry whose species URL cannot be parsed, which raises
RecordShapeError so the caller can skip that single entry.

Derivations applied here and nowhere else:
- card.set_id  = card.set.id, else the id prefix before the first "-"
- set.year     = first "/" segment of releaseDate, else None
- species id   = second-to-last "/" segment of the species URL

List/map fields are serialized with encode_blob(); query/transform.py holds the
matching decoder.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ptcg_data.config import EntityKind
from ptcg_data.exceptions import RecordShapeError

logger = structlog.get_logger(__name__)

FlatRow = dict[str, Any]

_FALSE_MARKERS = {"", "0", "false", "no", "off", "none", "null"}


# ---------------------------------------------------------------------------
# Scalar coercion helpers
# ---------------------------------------------------------------------------


def encode_blob(value: Any) -> str | None:
    """Serialize a nested structure for a JSON text column."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def to_flag(value: Any) -> int:
    """Canonical two-state boolean: 1 or 0."""
    if isinstance(value, str):
        return 0 if value.strip().lower() in _FALSE_MARKERS else 1
    return 1 if value else 0


def to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return None


def to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_text(value: Any) -> str | None:
    """Loose scalar to string. Containers become None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def to_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def to_map(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def derive_set_id(card_id: str | None) -> str | None:
    """Set code from a composite card id: "swsh4-25" -> "swsh4"."""
    if not card_id:
        return None
    return card_id.split("-", 1)[0]


def derive_year(release_date: str | None) -> str | None:
    """Year from a "YYYY/MM/DD" release date, or None when absent."""
    if not release_date:
        return None
    return release_date.split("/", 1)[0]


def species_id_from_url(url: Any) -> int:
    """
    Species id from a PokeAPI resource URL.

    "https://pokeapi.co/api/v2/pokemon-species/25/" -> 25

    Raises:
        RecordShapeError: when the URL is not a string or the second-to-last
            path segment is not an integer.
    """
    if not isinstance(url, str):
        raise RecordShapeError(f"species url is not a string: {url!r}")
    segments = url.split("/")
    if len(segments) < 2:
        raise RecordShapeError(f"species url has no id segment: {url!r}")
    try:
        return int(segments[-2])
    except ValueError as e:
        raise RecordShapeError(f"species url has no numeric id: {url!r}") from e


# ---------------------------------------------------------------------------
# Lenient source models (cards and sets keep a sideband of unknown keys)
# ---------------------------------------------------------------------------


class _LenientRecord(BaseModel):
    """Unknown keys are kept in model_extra and stored opaquely."""

    model_config = ConfigDict(extra="allow")

    def extras_blob(self) -> str | None:
        extras = dict(self.model_extra or {})
        return encode_blob(extras) if extras else None


class RawSet(_LenientRecord):
    id: str | None = None
    name: str | None = None
    series: str | None = None
    printedTotal: int | None = None
    total: int | None = None
    legalities: dict[str, Any] | None = None
    ptcgoCode: str | None = None
    releaseDate: str | None = None
    updatedAt: str | None = None
    images: dict[str, Any] | None = None
    # Never trusted; always re-derived from releaseDate.
    year: Any = None

    @field_validator("id", "name", "series", "ptcgoCode", "releaseDate", "updatedAt", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str | None:
        return to_text(v)

    @field_validator("printedTotal", "total", mode="before")
    @classmethod
    def _int(cls, v: Any) -> int | None:
        return to_int(v)

    @field_validator("legalities", "images", mode="before")
    @classmethod
    def _map(cls, v: Any) -> dict[str, Any] | None:
        return to_map(v)


class RawCard(_LenientRecord):
    id: str | None = None
    name: str | None = None
    supertype: str | None = None
    subtypes: list[Any] = Field(default_factory=list)
    level: str | None = None
    hp: str | None = None
    types: list[Any] = Field(default_factory=list)
    evolvesFrom: str | None = None
    evolvesTo: list[Any] = Field(default_factory=list)
    abilities: list[Any] = Field(default_factory=list)
    attacks: list[Any] = Field(default_factory=list)
    weaknesses: list[Any] = Field(default_factory=list)
    resistances: list[Any] = Field(default_factory=list)
    retreatCost: list[Any] = Field(default_factory=list)
    convertedRetreatCost: int | None = None
    number: str | None = None
    artist: str | None = None
    rarity: str | None = None
    flavorText: str | None = None
    nationalPokedexNumbers: list[Any] = Field(default_factory=list)
    legalities: dict[str, Any] | None = None
    images: dict[str, Any] | None = None
    rules: list[Any] = Field(default_factory=list)
    set: dict[str, Any] | None = None

    @field_validator(
        "id", "name", "supertype", "level", "hp", "evolvesFrom",
        "number", "artist", "rarity", "flavorText",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> str | None:
        return to_text(v)

    @field_validator(
        "subtypes", "types", "evolvesTo", "abilities", "attacks", "weaknesses",
        "resistances", "retreatCost", "nationalPokedexNumbers", "rules",
        mode="before",
    )
    @classmethod
    def _list(cls, v: Any) -> list[Any]:
        return to_list(v)

    @field_validator("convertedRetreatCost", mode="before")
    @classmethod
    def _int(cls, v: Any) -> int | None:
        return to_int(v)

    @field_validator("legalities", "images", "set", mode="before")
    @classmethod
    def _map(cls, v: Any) -> dict[str, Any] | None:
        return to_map(v)


# ---------------------------------------------------------------------------
# Per-kind normalizers
# ---------------------------------------------------------------------------


def normalize_set(raw: Any) -> FlatRow:
    record = RawSet.model_validate(raw if isinstance(raw, dict) else {})
    return {
        "id": record.id,
        "name": record.name,
        "series": record.series,
        "printed_total": record.printedTotal,
        "total": record.total,
        "legalities": encode_blob(record.legalities),
        "ptcgo_code": record.ptcgoCode,
        "release_date": record.releaseDate,
        "updated_at": record.updatedAt,
        "images": encode_blob(record.images),
        "year": derive_year(record.releaseDate),
        "extras": record.extras_blob(),
    }


def normalize_card(raw: Any) -> FlatRow:
    record = RawCard.model_validate(raw if isinstance(raw, dict) else {})
    set_id = to_text((record.set or {}).get("id")) or derive_set_id(record.id)
    return {
        "id": record.id,
        "name": record.name,
        "supertype": record.supertype,
        "subtypes": encode_blob(record.subtypes),
        "level": record.level,
        "hp": record.hp,
        "types": encode_blob(record.types),
        "evolves_from": record.evolvesFrom,
        "evolves_to": encode_blob(record.evolvesTo),
        "abilities": encode_blob(record.abilities),
        "attacks": encode_blob(record.attacks),
        "weaknesses": encode_blob(record.weaknesses),
        "resistances": encode_blob(record.resistances),
        "retreat_cost": encode_blob(record.retreatCost),
        "converted_retreat_cost": record.convertedRetreatCost,
        "number": record.number,
        "artist": record.artist,
        "rarity": record.rarity,
        "flavor_text": record.flavorText,
        "national_pokedex_numbers": encode_blob(record.nationalPokedexNumbers),
        "legalities": encode_blob(record.legalities),
        "images": encode_blob(record.images),
        "rules": encode_blob(record.rules),
        "extras": record.extras_blob(),
        "set_id": set_id,
    }


def _has_card_list(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("cards"), list)


def decks_from_payload(payload: Any, set_id: str) -> list[dict[str, Any]]:
    """
    Shape one deck file's payload into deck records.

    A JSON array holds one deck per element; anything else is a single deck.
    A deck's cards are its own `cards` value when present, otherwise the
    element (or payload) itself.
    """
    if isinstance(payload, list):
        decks = []
        for index, item in enumerate(payload):
            item_map = item if isinstance(item, dict) else {}
            decks.append(
                {
                    "id": item_map.get("id") or f"{set_id}-deck-{index}",
                    "name": item_map.get("name") or f"{set_id} Deck {index + 1}",
                    "setId": set_id,
                    "cards": item_map["cards"] if _has_card_list(item_map) else item,
                }
            )
        return decks
    return [
        {
            "id": f"{set_id}-deck",
            "name": f"{set_id} Deck",
            "setId": set_id,
            "cards": payload["cards"] if _has_card_list(payload) else payload,
        }
    ]


def normalize_deck(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    set_id = to_text(raw.get("setId"))
    deck_id = to_text(raw.get("id")) or (f"{set_id}-deck" if set_id else None)
    # Deck files are not uniform: cards may be a list or a keyed object.
    cards = raw.get("cards")
    return {
        "id": deck_id,
        "name": to_text(raw.get("name")) or "Unknown Deck",
        "set_id": set_id,
        "cards": encode_blob(cards if isinstance(cards, (list, dict)) else []),
    }


def normalize_type(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    return {
        "id": to_text(raw.get("id")),
        "name": to_text(raw.get("name")),
        "color": to_text(raw.get("color")),
        "is_canonical": to_flag(raw.get("isCanonical")),
    }


def normalize_move(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    return {
        "id": to_text(raw.get("id")),
        "name": to_text(raw.get("name")),
        "ps_name": to_text(raw.get("psName")),
        "generation": to_int(raw.get("generation")),
        "description": to_text(raw.get("desc")),
        "short_desc": to_text(raw.get("shortDesc")),
        "type": to_text(raw.get("type")),
        "power": to_int(raw.get("power")),
        "accuracy": to_int(raw.get("accuracy")),
        "pp": to_int(raw.get("pp")),
        "category": to_text(raw.get("category")),
        "priority": to_int(raw.get("priority")),
        "is_z": to_flag(raw.get("isZ")),
        "is_gmax": to_flag(raw.get("isGmax")),
    }


def normalize_ability(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    return {
        "id": to_text(raw.get("id")),
        "name": to_text(raw.get("name")),
        "description": to_text(raw.get("desc")),
        "short_desc": to_text(raw.get("shortDesc")),
        "generation": to_int(raw.get("generation")),
    }


def normalize_species(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    species_id = to_int(raw.get("nationalDexNumber")) or to_int(raw.get("id"))
    return {
        "id": species_id,
        "name": to_text(raw.get("name")),
        "types": encode_blob(to_list(raw.get("types"))),
        "abilities": encode_blob(to_list(raw.get("abilities"))),
        "hidden_abilities": encode_blob(to_list(raw.get("hiddenAbilities"))),
        "base_stats": encode_blob(to_map(raw.get("baseStats")) or {}),
        "height": to_float(raw.get("height")),
        "weight": to_float(raw.get("weight")),
        "generation": to_int(raw.get("generation")),
        "evolution_chain": encode_blob(to_map(raw.get("evolutionChain")) or {}),
    }


def normalize_pokedex(raw: Any) -> FlatRow:
    raw = raw if isinstance(raw, dict) else {}
    region = to_map(raw.get("region")) or {}
    return {
        "id": to_int(raw.get("id")),
        "name": to_text(raw.get("name")),
        "descriptions": encode_blob(to_list(raw.get("descriptions"))),
        "names": encode_blob(to_list(raw.get("names"))),
        "is_main_series": to_flag(raw.get("is_main_series")),
        "region": to_text(region.get("name")),
    }


def normalize_pokedex_entry(raw: Any, pokedex_id: int) -> FlatRow:
    """
    Flatten one `pokemon_entries` item of a pokedex resource.

    Raises:
        RecordShapeError: when the entry number or species URL is unusable.
    """
    if not isinstance(raw, dict):
        raise RecordShapeError(f"pokedex entry is not an object: {raw!r}")
    entry_number = to_int(raw.get("entry_number"))
    if entry_number is None:
        raise RecordShapeError(f"pokedex entry has no entry_number: {raw!r}")
    species = to_map(raw.get("pokemon_species")) or {}
    return {
        "pokedex_id": pokedex_id,
        "entry_number": entry_number,
        "pokemon_species_id": species_id_from_url(species.get("url")),
        "pokemon_species_name": to_text(species.get("name")),
    }


_NORMALIZERS = {
    EntityKind.SET: normalize_set,
    EntityKind.CARD: normalize_card,
    EntityKind.DECK: normalize_deck,
    EntityKind.TYPE: normalize_type,
    EntityKind.MOVE: normalize_move,
    EntityKind.ABILITY: normalize_ability,
    EntityKind.SPECIES: normalize_species,
    EntityKind.POKEDEX: normalize_pokedex,
}


def normalize(raw: Any, kind: EntityKind, *, pokedex_id: int | None = None) -> FlatRow:
    """
    Normalize one raw record of the given kind into a flat row.

    Args:
        raw: Decoded JSON record.
        kind: Which entity the record describes.
        pokedex_id: Owning pokedex, required for EntityKind.POKEDEX_ENTRY.
    """
    if kind is EntityKind.POKEDEX_ENTRY:
        if pokedex_id is None:
            raise ValueError("pokedex_id is required for pokedex entries")
        return normalize_pokedex_entry(raw, pokedex_id)
    return _NORMALIZERS[kind](raw)
