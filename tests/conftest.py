"""
PTCG Data - Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- A temporary SQLite store (engine + session factory) with the schema created
- A dataset directory laid out like the upstream card data repo
- Raw source records for sets, cards and the external reference APIs
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ptcg_data.db import create_db_engine, create_schema
from ptcg_data.pipeline.migrate import Migrator


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for anyio tests."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Raw source records
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_sets() -> list[dict[str, Any]]:
    return [
        {
            "id": "base1",
            "name": "Base",
            "series": "Base",
            "printedTotal": 102,
            "total": 102,
            "legalities": {"unlimited": "Legal"},
            "ptcgoCode": "BS",
            "releaseDate": "1999/01/09",
            "updatedAt": "2022/10/10 15:12:00",
            "images": {"symbol": "https://images.example/base1/symbol.png"},
        },
        {
            "id": "base2",
            "name": "Jungle",
            "series": "Base",
            "printedTotal": 64,
            "total": 64,
            "legalities": {"unlimited": "Legal"},
            "ptcgoCode": "JU",
            "releaseDate": "1999/06/16",
            "updatedAt": "2020/08/14 09:35:00",
            "images": {"symbol": "https://images.example/base2/symbol.png"},
        },
        {
            "id": "sv1",
            "name": "Scarlet & Violet",
            "series": "Scarlet & Violet",
            "printedTotal": 198,
            "total": 258,
            "legalities": {"unlimited": "Legal", "standard": "Legal"},
            "ptcgoCode": "SVI",
            "releaseDate": "2023/03/31",
            "updatedAt": "2023/03/31 15:45:00",
            "images": {"symbol": "https://images.example/sv1/symbol.png"},
            # Stale upstream value; the stored year comes from releaseDate.
            "year": "2022",
        },
    ]


@pytest.fixture
def base_cards() -> list[dict[str, Any]]:
    return [
        {
            "id": "base1-4",
            "name": "Charizard",
            "supertype": "Pokémon",
            "subtypes": ["Stage 2"],
            "hp": "120",
            "types": ["Fire"],
            "evolvesFrom": "Charmeleon",
            "attacks": [{"name": "Fire Spin", "cost": ["Fire"] * 4, "damage": "100"}],
            "weaknesses": [{"type": "Water", "value": "×2"}],
            "retreatCost": ["Colorless"] * 3,
            "convertedRetreatCost": 3,
            "number": "4",
            "artist": "Mitsuhiro Arita",
            "rarity": "Rare Holo",
            "nationalPokedexNumbers": [6],
            "legalities": {"unlimited": "Legal"},
            "images": {"small": "https://images.example/base1/4.png"},
            "set": {"id": "base1", "name": "Base"},
        },
        {
            "id": "base1-2",
            "name": "Blastoise",
            "supertype": "Pokémon",
            "subtypes": ["Stage 2"],
            "hp": "100",
            "types": ["Water"],
            "number": "2",
            "rarity": "Rare Holo",
            "nationalPokedexNumbers": [9],
        },
    ]


@pytest.fixture
def jungle_cards() -> list[dict[str, Any]]:
    return [
        {
            "id": "base2-1",
            "name": "Pikachu",
            "supertype": "Pokémon",
            "subtypes": ["Basic"],
            "hp": "40",
            "types": ["Fire", "Water"],
            "number": "1",
            "rarity": "Rare",
            "nationalPokedexNumbers": [25, 26],
        },
        {
            "id": "base2-60",
            "name": "Raichu",
            "supertype": "Pokémon",
            "subtypes": ["Stage 1"],
            "hp": "80",
            "types": ["Lightning"],
            "number": "60",
            "rarity": "Rare",
            "nationalPokedexNumbers": [26],
        },
    ]


@pytest.fixture
def sv1_cards() -> list[dict[str, Any]]:
    return [
        {
            "id": "sv1-198",
            "name": "Energy Retrieval",
            "supertype": "Trainer",
            "subtypes": ["Item"],
            "rules": ["Put up to 2 Basic Energy cards from your discard pile into your hand."],
            "number": "198",
            "rarity": "Uncommon",
            "regulationMark": "G",
            "set": {"id": "sv1"},
        }
    ]


@pytest.fixture
def reference_payloads() -> dict[str, list[dict[str, Any]]]:
    """Files of the flat reference dataset, keyed by file name."""
    return {
        "types.json": [
            {"id": "fire", "name": "Fire", "color": "#F08030", "isCanonical": True},
            {"id": "water", "name": "Water", "color": "#6890F0", "isCanonical": "false"},
        ],
        "moves.json": [
            {
                "id": "thunderbolt",
                "name": "Thunderbolt",
                "psName": "thunderbolt",
                "generation": 1,
                "desc": "10% chance to paralyze the target.",
                "shortDesc": "10% chance to paralyze.",
                "type": "Electric",
                "power": 90,
                "accuracy": 100,
                "pp": 15,
                "category": "Special",
                "priority": 0,
                "isZ": False,
                "isGmax": False,
            }
        ],
        "abilities.json": [
            {
                "id": "static",
                "name": "Static",
                "desc": "30% chance a contact attacker is paralyzed.",
                "shortDesc": "30% chance to paralyze on contact.",
                "generation": 3,
            }
        ],
        "pokemon.json": [
            {
                "id": "pikachu",
                "nationalDexNumber": 25,
                "name": "Pikachu",
                "types": ["Electric"],
                "abilities": ["Static"],
                "hiddenAbilities": ["Lightning Rod"],
                "baseStats": {"hp": 35, "atk": 55},
                "height": 0.4,
                "weight": 6.0,
                "generation": 1,
                "evolutionChain": {"evolvesTo": ["raichu"]},
            }
        ],
    }


@pytest.fixture
def pokedex_payloads() -> dict[str, Any]:
    """PokeAPI list response plus one pokedex resource."""
    base = "https://pokeapi.co/api/v2"
    return {
        "list": {
            "count": 2,
            "results": [
                {"name": "national", "url": f"{base}/pokedex/1/"},
                {"name": "kanto", "url": f"{base}/pokedex/2/"},
            ],
        },
        "national": {
            "id": 1,
            "name": "national",
            "is_main_series": True,
            "descriptions": [{"description": "Entire National dex", "language": {"name": "en"}}],
            "names": [{"name": "National", "language": {"name": "en"}}],
            "region": None,
            "pokemon_entries": [
                {
                    "entry_number": 1,
                    "pokemon_species": {
                        "name": "bulbasaur",
                        "url": f"{base}/pokemon-species/1/",
                    },
                },
                {
                    "entry_number": 25,
                    "pokemon_species": {
                        "name": "pikachu",
                        "url": f"{base}/pokemon-species/25/",
                    },
                },
                {
                    "entry_number": 26,
                    "pokemon_species": {"name": "raichu", "url": "not-a-url"},
                },
            ],
        },
    }


# ---------------------------------------------------------------------------
# Dataset directory
# ---------------------------------------------------------------------------


@pytest.fixture
def dataset_dir(
    tmp_path: Path,
    sample_sets: list[dict[str, Any]],
    base_cards: list[dict[str, Any]],
    jungle_cards: list[dict[str, Any]],
    sv1_cards: list[dict[str, Any]],
) -> Path:
    """
    tmp_path/data laid out as sets/*.json and cards/en/*.json.

    No deck files; tests that need them write decks/en/<set>.json themselves.
    """
    root = tmp_path / "data"
    (root / "sets").mkdir(parents=True)
    (root / "cards" / "en").mkdir(parents=True)

    (root / "sets" / "en.json").write_text(json.dumps(sample_sets), encoding="utf-8")
    (root / "cards" / "en" / "base1.json").write_text(json.dumps(base_cards), encoding="utf-8")
    (root / "cards" / "en" / "base2.json").write_text(json.dumps(jungle_cards), encoding="utf-8")
    (root / "cards" / "en" / "sv1.json").write_text(json.dumps(sv1_cards), encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@pytest.fixture
async def store(
    tmp_path: Path,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """
    Fresh file-backed SQLite store with every table created.

    A file (not :memory:) so every pooled connection sees the same database.
    """
    engine, session_factory = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_schema(engine)

    yield engine, session_factory

    await engine.dispose()


@pytest.fixture
def session_factory(
    store: tuple[AsyncEngine, async_sessionmaker[AsyncSession]],
) -> async_sessionmaker[AsyncSession]:
    return store[1]


@pytest.fixture
async def seeded_store(
    store: tuple[AsyncEngine, async_sessionmaker[AsyncSession]],
    dataset_dir: Path,
) -> async_sessionmaker[AsyncSession]:
    """Store loaded with the local sets and cards only (no network)."""
    engine, session_factory = store
    migrator = Migrator(engine, session_factory, data_dir=dataset_dir)
    await migrator.migrate_sets()
    await migrator.migrate_cards()
    return session_factory
