"""
Tests for the migration orchestrator (ptcg_data/pipeline/migrate.py).

Covers:
- Full run against local files + mocked reference APIs
- Idempotence: a second run leaves every table unchanged
- Partial failure: a failed enrichment step does not stop later steps
- Fatal failure: a malformed local card file aborts with a partial report
- Decks: optional, skipped when absent, shaped from file stem when present
- Per-record skipping of incomplete rows and bad pokedex entries
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from ptcg_data.config import StepStatus, settings
from ptcg_data.db import COUNTED_TABLES, table_counts
from ptcg_data.exceptions import LocalLoadError, MigrationAbortedError
from ptcg_data.pipeline.migrate import Migrator, POKEDEX_ENTRIES, TableSpec
from ptcg_data.pipeline.pokeapi import PokeApiClient
from ptcg_data.pipeline.reference import ReferenceDatasetClient

REFERENCE_URL = settings.REFERENCE_DATASET_URL
POKEAPI_URL = settings.POKEAPI_BASE_URL


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _migrator(store, data_dir: Path) -> Migrator:
    engine, session_factory = store
    return Migrator(
        engine,
        session_factory,
        data_dir=data_dir,
        reference_client_factory=lambda: ReferenceDatasetClient(max_retries=0),
        pokeapi_client_factory=lambda: PokeApiClient(max_retries=0, request_delay=0),
    )


def _mock_remote(
    mock: respx.MockRouter,
    reference_payloads: dict[str, Any],
    pokedex_payloads: dict[str, Any],
    failing: tuple[str, ...] = (),
) -> None:
    for filename, payload in reference_payloads.items():
        response = httpx.Response(500) if filename in failing else httpx.Response(200, json=payload)
        mock.get(f"{REFERENCE_URL}/{filename}").mock(return_value=response)
    mock.get(f"{POKEAPI_URL}/pokedex").mock(
        return_value=httpx.Response(200, json=pokedex_payloads["list"])
    )
    mock.get(f"{POKEAPI_URL}/pokedex/1/").mock(
        return_value=httpx.Response(200, json=pokedex_payloads["national"])
    )
    mock.get(f"{POKEAPI_URL}/pokedex/2/").mock(return_value=httpx.Response(404))


async def _dump(session_factory) -> dict[str, list[tuple]]:
    dump = {}
    async with session_factory() as session:
        for table in COUNTED_TABLES:
            result = await session.execute(text(f"SELECT * FROM {table} ORDER BY 1"))
            dump[table] = [tuple(row) for row in result.all()]
    return dump


# ---------------------------------------------------------------------------
# Upsert SQL
# ---------------------------------------------------------------------------


def test_upsert_sql_updates_non_key_columns() -> None:
    spec = TableSpec("things", ("id", "name", "color"))
    assert spec.upsert_sql() == (
        "INSERT INTO things (id, name, color) VALUES (:id, :name, :color) "
        "ON CONFLICT (id) DO UPDATE SET name = excluded.name, color = excluded.color"
    )


def test_pokedex_entries_upsert_on_dex_and_number() -> None:
    sql = POKEDEX_ENTRIES.upsert_sql()
    assert "ON CONFLICT (pokedex_id, entry_number)" in sql
    assert "pokedex_id = excluded" not in sql


# ---------------------------------------------------------------------------
# Full run
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_migrate_all_populates_every_table(
    store, dataset_dir, reference_payloads, pokedex_payloads
) -> None:
    with respx.mock(assert_all_called=False) as mock:
        _mock_remote(mock, reference_payloads, pokedex_payloads)
        report = await _migrator(store, dataset_dir).migrate_all()

    assert report.ok
    assert [s.name for s in report.steps] == [
        "schema", "sets", "cards", "decks", "types",
        "moves", "abilities", "species", "pokedexes",
    ]
    assert report.step("decks").status is StepStatus.SKIPPED
    # national dex stored; kanto (404) and the raichu entry (bad URL) skipped
    assert report.step("pokedexes").skipped == 2

    counts = await table_counts(store[1])
    assert counts == {
        "sets": 3,
        "cards": 5,
        "decks": 0,
        "pokemon_types": 2,
        "pokemon_moves": 1,
        "pokemon_abilities": 1,
        "pokemon_species": 1,
        "pokedexes": 1,
        "pokedex_entries": 2,
    }


@pytest.mark.asyncio
async def test_migrate_all_is_idempotent(
    store, dataset_dir, reference_payloads, pokedex_payloads
) -> None:
    with respx.mock(assert_all_called=False) as mock:
        _mock_remote(mock, reference_payloads, pokedex_payloads)
        await _migrator(store, dataset_dir).migrate_all()
        first = await _dump(store[1])
        await _migrator(store, dataset_dir).migrate_all()
        second = await _dump(store[1])

    assert first == second


@pytest.mark.asyncio
async def test_rerun_overwrites_changed_source(store, dataset_dir, sample_sets) -> None:
    migrator = _migrator(store, dataset_dir)
    await migrator.migrate_sets()

    sample_sets[0]["name"] = "Base Set"
    (dataset_dir / "sets" / "en.json").write_text(json.dumps(sample_sets))
    await migrator.migrate_sets()

    async with store[1]() as session:
        name = (await session.execute(text("SELECT name FROM sets WHERE id = 'base1'"))).scalar_one()
        count = (await session.execute(text("SELECT COUNT(*) FROM sets"))).scalar_one()
    assert name == "Base Set"
    assert count == 3


@pytest.mark.asyncio
async def test_stored_year_comes_from_release_date(store, dataset_dir) -> None:
    await _migrator(store, dataset_dir).migrate_sets()

    async with store[1]() as session:
        year = (await session.execute(text("SELECT year FROM sets WHERE id = 'sv1'"))).scalar_one()
    assert year == "2023"


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_species_failure_does_not_stop_other_steps(
    store, dataset_dir, reference_payloads, pokedex_payloads
) -> None:
    migrator = _migrator(store, dataset_dir)
    with respx.mock(assert_all_called=False) as mock:
        _mock_remote(mock, reference_payloads, pokedex_payloads)
        await migrator.migrate_all()
    before = await _dump(store[1])

    with respx.mock(assert_all_called=False) as mock:
        _mock_remote(mock, reference_payloads, pokedex_payloads, failing=("pokemon.json",))
        report = await migrator.migrate_all()

    assert report.ok
    species = report.step("species")
    assert species.status is StepStatus.FAILED
    assert "HTTP 500" in species.error
    for name in ("types", "moves", "abilities", "pokedexes"):
        assert report.step(name).status is StepStatus.OK, name

    after = await _dump(store[1])
    # Prior data untouched, including the species rows from the first run.
    assert after == before


@pytest.mark.asyncio
async def test_all_remote_steps_fail_offline(store, dataset_dir) -> None:
    with respx.mock(assert_all_called=False) as mock:
        mock.route().mock(side_effect=httpx.ConnectError("offline"))
        report = await _migrator(store, dataset_dir).migrate_all()

    assert report.ok
    failed = [s.name for s in report.steps if s.status is StepStatus.FAILED]
    assert failed == ["types", "moves", "abilities", "species", "pokedexes"]
    counts = await table_counts(store[1])
    assert counts["cards"] == 5


@pytest.mark.asyncio
async def test_malformed_card_file_aborts(store, dataset_dir) -> None:
    (dataset_dir / "cards" / "en" / "zz-broken.json").write_text('[{"id": "base1-1"')

    with respx.mock(assert_all_called=False):
        with pytest.raises(MigrationAbortedError) as exc_info:
            await _migrator(store, dataset_dir).migrate_all()

    error = exc_info.value
    assert error.step == "cards"
    assert isinstance(error.__cause__, LocalLoadError)
    assert not error.report.ok
    assert error.report.step("sets").status is StepStatus.OK
    assert error.report.step("cards").status is StepStatus.FAILED
    assert error.report.step("types") is None

    counts = await table_counts(store[1])
    assert counts["sets"] == 3
    assert counts["cards"] == 0


@pytest.mark.asyncio
async def test_card_batch_is_atomic(store, dataset_dir, base_cards) -> None:
    """A card pointing at an unknown set fails the whole batch, not one row."""
    migrator = _migrator(store, dataset_dir)
    await migrator.migrate_sets()
    (dataset_dir / "cards" / "en" / "zz-orphan.json").write_text(
        json.dumps([{"id": "nope1-1", "name": "Orphan"}])
    )

    with pytest.raises(IntegrityError):
        await migrator.migrate_cards()

    counts = await table_counts(store[1])
    assert counts["cards"] == 0


@pytest.mark.asyncio
async def test_records_missing_keys_are_skipped(store, dataset_dir) -> None:
    (dataset_dir / "cards" / "en" / "zz-partial.json").write_text(
        json.dumps([{"name": "No Id"}, {"id": "base1-99"}])
    )
    migrator = _migrator(store, dataset_dir)
    await migrator.migrate_sets()
    result = await migrator.migrate_cards()

    assert result.rows == 5
    assert result.skipped == 2


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_decks_loaded_from_file_stem(store, dataset_dir) -> None:
    decks_dir = dataset_dir / "decks" / "en"
    decks_dir.mkdir(parents=True)
    (decks_dir / "base1.json").write_text(
        json.dumps(
            [
                {"id": "d-brushfire", "name": "Brushfire", "cards": [{"id": "base1-4", "count": 1}]},
                [{"id": "base1-2", "count": 2}],
            ]
        )
    )

    migrator = _migrator(store, dataset_dir)
    await migrator.migrate_sets()
    result = await migrator.migrate_decks()

    assert result.status is StepStatus.OK
    assert result.rows == 2
    async with store[1]() as session:
        rows = (await session.execute(text("SELECT id, name, set_id FROM decks ORDER BY id"))).all()
    assert [tuple(r) for r in rows] == [
        ("base1-deck-1", "base1 Deck 2", "base1"),
        ("d-brushfire", "Brushfire", "base1"),
    ]


@pytest.mark.asyncio
async def test_single_object_deck_file_stores_cards(store, dataset_dir) -> None:
    decks_dir = dataset_dir / "decks" / "en"
    decks_dir.mkdir(parents=True)
    (decks_dir / "base2.json").write_text(
        json.dumps({"cards": [{"id": "base2-1", "count": 4}, {"id": "base2-60", "count": 2}]})
    )

    migrator = _migrator(store, dataset_dir)
    await migrator.migrate_sets()
    result = await migrator.migrate_decks()

    assert result.rows == 1
    async with store[1]() as session:
        cards = (
            await session.execute(text("SELECT cards FROM decks WHERE id = 'base2-deck'"))
        ).scalar_one()
    assert json.loads(cards) == [{"id": "base2-1", "count": 4}, {"id": "base2-60", "count": 2}]


@pytest.mark.asyncio
async def test_no_deck_files_is_skipped_not_failed(store, dataset_dir) -> None:
    result = await _migrator(store, dataset_dir).migrate_decks()
    assert result.status is StepStatus.SKIPPED
    assert result.error is None


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_report_to_dict(store, dataset_dir) -> None:
    with respx.mock(assert_all_called=False) as mock:
        mock.route().mock(return_value=httpx.Response(503))
        report = await _migrator(store, dataset_dir).migrate_all()

    payload = report.to_dict()
    assert payload["ok"] is True
    cards = next(s for s in payload["steps"] if s["name"] == "cards")
    assert cards == {
        "name": "cards",
        "status": "ok",
        "fatal": True,
        "rows": 5,
        "skipped": 0,
        "error": None,
    }
