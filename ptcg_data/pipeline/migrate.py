"""
PTCG Data - Migration Orchestrator

Runs the ingestion steps in dependency order against one store handle:

    schema -> sets -> cards -> decks -> types -> moves -> abilities
           -> species -> pokedexes (+ entries)

Each step declares whether it is fatal. Schema, sets and cards are the
authoritative local data: their failure aborts the run with
MigrationAbortedError. Every other step is best-effort enrichment: a failure
is logged, recorded in the report, and the next step runs.

Every step writes its whole batch in a single transaction using
INSERT ... ON CONFLICT DO UPDATE keyed by the table's primary (or unique) key,
so re-running the migration against the same sources converges to the same
store contents. Nothing is ever deleted.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ptcg_data.config import EntityKind, StepStatus, settings
from ptcg_data.db import create_schema
from ptcg_data.exceptions import MigrationAbortedError, RecordShapeError
from ptcg_data.pipeline import local
from ptcg_data.pipeline.normalize import (
    FlatRow,
    decks_from_payload,
    normalize,
)
from ptcg_data.pipeline.pokeapi import PokeApiClient
from ptcg_data.pipeline.reference import ReferenceDatasetClient

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Table upsert definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TableSpec:
    """Columns written by the pipeline and the conflict key for upserts."""

    name: str
    columns: tuple[str, ...]
    key: tuple[str, ...] = ("id",)
    required: tuple[str, ...] = ("id", "name")

    def upsert_sql(self) -> str:
        cols = ", ".join(self.columns)
        params = ", ".join(f":{c}" for c in self.columns)
        updates = ", ".join(
            f"{c} = excluded.{c}" for c in self.columns if c not in self.key
        )
        return (
            f"INSERT INTO {self.name} ({cols}) VALUES ({params}) "
            f"ON CONFLICT ({', '.join(self.key)}) DO UPDATE SET {updates}"
        )


SETS = TableSpec(
    "sets",
    (
        "id", "name", "series", "printed_total", "total", "legalities",
        "ptcgo_code", "release_date", "updated_at", "images", "year", "extras",
    ),
)
CARDS = TableSpec(
    "cards",
    (
        "id", "name", "supertype", "subtypes", "level", "hp", "types",
        "evolves_from", "evolves_to", "abilities", "attacks", "weaknesses",
        "resistances", "retreat_cost", "converted_retreat_cost", "number",
        "artist", "rarity", "flavor_text", "national_pokedex_numbers",
        "legalities", "images", "rules", "extras", "set_id",
    ),
)
DECKS = TableSpec("decks", ("id", "name", "set_id", "cards"), required=("id",))
TYPES = TableSpec("pokemon_types", ("id", "name", "color", "is_canonical"))
MOVES = TableSpec(
    "pokemon_moves",
    (
        "id", "name", "ps_name", "generation", "description", "short_desc",
        "type", "power", "accuracy", "pp", "category", "priority", "is_z", "is_gmax",
    ),
)
ABILITIES = TableSpec(
    "pokemon_abilities", ("id", "name", "description", "short_desc", "generation")
)
SPECIES = TableSpec(
    "pokemon_species",
    (
        "id", "name", "types", "abilities", "hidden_abilities", "base_stats",
        "height", "weight", "generation", "evolution_chain",
    ),
)
POKEDEXES = TableSpec(
    "pokedexes", ("id", "name", "descriptions", "names", "is_main_series", "region")
)
POKEDEX_ENTRIES = TableSpec(
    "pokedex_entries",
    ("pokedex_id", "entry_number", "pokemon_species_id", "pokemon_species_name"),
    key=("pokedex_id", "entry_number"),
    required=("pokedex_id", "entry_number", "pokemon_species_id"),
)


# ---------------------------------------------------------------------------
# Report types
# ---------------------------------------------------------------------------


@dataclass
class StepResult:
    """Outcome of one migration step."""

    name: str
    status: StepStatus = StepStatus.OK
    fatal: bool = False
    rows: int = 0
    skipped: int = 0
    error: str | None = None


@dataclass
class MigrationReport:
    """Per-step results of one migrate_all() run."""

    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no fatal step failed."""
        return not any(s.fatal and s.status is StepStatus.FAILED for s in self.steps)

    def step(self, name: str) -> StepResult | None:
        return next((s for s in self.steps if s.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "steps": [{**asdict(s), "status": s.status.value} for s in self.steps],
        }


@dataclass(frozen=True)
class MigrationStep:
    """A named unit of ingestion work and whether its failure aborts the run."""

    name: str
    run: Callable[[], Awaitable[StepResult]]
    fatal: bool = False


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Migrator:
    """
    Drives a full ingestion run against an explicit store handle.

    Usage:
        engine, session_factory = create_db_engine()
        report = await Migrator(engine, session_factory).migrate_all()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        data_dir: str | Path | None = None,
        reference_client_factory: Callable[[], ReferenceDatasetClient] = ReferenceDatasetClient,
        pokeapi_client_factory: Callable[[], PokeApiClient] = PokeApiClient,
    ) -> None:
        self.engine = engine
        self.session_factory = session_factory
        self.data_dir = Path(data_dir if data_dir is not None else settings.DATA_DIR)
        self._reference_client_factory = reference_client_factory
        self._pokeapi_client_factory = pokeapi_client_factory

    def steps(self) -> list[MigrationStep]:
        return [
            MigrationStep("schema", self.migrate_schema, fatal=True),
            MigrationStep("sets", self.migrate_sets, fatal=True),
            MigrationStep("cards", self.migrate_cards, fatal=True),
            MigrationStep("decks", self.migrate_decks),
            MigrationStep("types", self.migrate_types),
            MigrationStep("moves", self.migrate_moves),
            MigrationStep("abilities", self.migrate_abilities),
            MigrationStep("species", self.migrate_species),
            MigrationStep("pokedexes", self.migrate_pokedexes),
        ]

    async def migrate_all(self) -> MigrationReport:
        """
        Run every step in order and collect a report.

        Raises:
            MigrationAbortedError: when a fatal step fails. The partial report
                is attached and the original error is chained.
        """
        report = MigrationReport()
        logger.info("migration_started", data_dir=str(self.data_dir))

        for step in self.steps():
            try:
                result = await step.run()
                result.name = step.name
                result.fatal = step.fatal
            except Exception as e:
                result = StepResult(
                    name=step.name,
                    status=StepStatus.FAILED,
                    fatal=step.fatal,
                    error=str(e),
                )
                report.steps.append(result)
                if step.fatal:
                    logger.error(
                        "migration_step_failed_fatal",
                        step=step.name,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise MigrationAbortedError(step.name, report) from e
                logger.warning(
                    "migration_step_failed",
                    step=step.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    note="continuing without this data",
                )
                continue

            report.steps.append(result)
            logger.info(
                "migration_step_complete",
                step=step.name,
                status=result.status.value,
                rows=result.rows,
                skipped=result.skipped,
            )

        logger.info("migration_complete", ok=report.ok)
        return report

    # -----------------------------------------------------------------------
    # Storage
    # -----------------------------------------------------------------------

    async def _upsert_batches(self, batches: Sequence[tuple[TableSpec, list[FlatRow]]]) -> int:
        """Upsert several tables' rows in one transaction. Returns rows written."""
        written = 0
        async with self.session_factory() as session:
            async with session.begin():
                for table, rows in batches:
                    if not rows:
                        continue
                    await session.execute(text(table.upsert_sql()), rows)
                    written += len(rows)
        return written

    @staticmethod
    def _complete_rows(table: TableSpec, rows: list[FlatRow]) -> tuple[list[FlatRow], int]:
        """Drop rows missing a required column. Returns (kept, skipped)."""
        kept: list[FlatRow] = []
        for row in rows:
            missing = [c for c in table.required if row.get(c) in (None, "")]
            if missing:
                logger.warning(
                    "migration_record_skipped",
                    table=table.name,
                    record_id=row.get("id"),
                    missing=missing,
                )
                continue
            kept.append(row)
        return kept, len(rows) - len(kept)

    async def _store(self, table: TableSpec, kind: EntityKind, records: list[Any]) -> StepResult:
        rows, skipped = self._complete_rows(table, [normalize(r, kind) for r in records])
        written = await self._upsert_batches([(table, rows)])
        return StepResult(name=table.name, rows=written, skipped=skipped)

    # -----------------------------------------------------------------------
    # Authoritative local steps
    # -----------------------------------------------------------------------

    async def migrate_schema(self) -> StepResult:
        await create_schema(self.engine)
        return StepResult(name="schema")

    async def migrate_sets(self) -> StepResult:
        records = local.load_local(self.data_dir, settings.SETS_GLOB)
        return await self._store(SETS, EntityKind.SET, records)

    async def migrate_cards(self) -> StepResult:
        records = local.load_local(self.data_dir, settings.CARDS_GLOB)
        return await self._store(CARDS, EntityKind.CARD, records)

    async def migrate_decks(self) -> StepResult:
        """Deck files are optional; a set's decks are named by the file stem."""
        files = local.matching_files(self.data_dir, settings.DECKS_GLOB)
        if not files:
            logger.info("migration_decks_none_found", pattern=settings.DECKS_GLOB)
            return StepResult(name="decks", status=StepStatus.SKIPPED)

        records: list[dict[str, Any]] = []
        for path in files:
            records.extend(decks_from_payload(local.read_payload(path), path.stem))
        return await self._store(DECKS, EntityKind.DECK, records)

    # -----------------------------------------------------------------------
    # Best-effort reference steps
    # -----------------------------------------------------------------------

    async def migrate_types(self) -> StepResult:
        async with self._reference_client_factory() as client:
            records = await client.fetch_types()
        return await self._store(TYPES, EntityKind.TYPE, records)

    async def migrate_moves(self) -> StepResult:
        async with self._reference_client_factory() as client:
            records = await client.fetch_moves()
        return await self._store(MOVES, EntityKind.MOVE, records)

    async def migrate_abilities(self) -> StepResult:
        async with self._reference_client_factory() as client:
            records = await client.fetch_abilities()
        return await self._store(ABILITIES, EntityKind.ABILITY, records)

    async def migrate_species(self) -> StepResult:
        async with self._reference_client_factory() as client:
            records = await client.fetch_species()
        return await self._store(SPECIES, EntityKind.SPECIES, records)

    async def migrate_pokedexes(self) -> StepResult:
        """
        Fetch every pokedex, then write pokedexes and their entries together.

        Pokedexes that failed to fetch and entries with an unusable species
        URL are counted as skipped.
        """
        async with self._pokeapi_client_factory() as client:
            batch = await client.fetch_all_pokedexes()

        skipped = len(batch.failed)
        pokedex_rows: list[FlatRow] = []
        entry_rows: list[FlatRow] = []
        for pokedex in batch.pokedexes:
            kept, dropped = self._complete_rows(POKEDEXES, [normalize(pokedex, EntityKind.POKEDEX)])
            skipped += dropped
            if not kept:
                continue
            pokedex_id = kept[0]["id"]
            pokedex_rows.extend(kept)

            entries = pokedex.get("pokemon_entries")
            for entry in entries if isinstance(entries, list) else []:
                try:
                    entry_rows.append(
                        normalize(entry, EntityKind.POKEDEX_ENTRY, pokedex_id=pokedex_id)
                    )
                except RecordShapeError as e:
                    skipped += 1
                    logger.warning(
                        "migration_pokedex_entry_skipped",
                        pokedex_id=pokedex_id,
                        error=str(e),
                    )

        written = await self._upsert_batches(
            [(POKEDEXES, pokedex_rows), (POKEDEX_ENTRIES, entry_rows)]
        )
        logger.info(
            "migration_pokedexes_stored",
            pokedexes=len(pokedex_rows),
            entries=len(entry_rows),
        )
        return StepResult(name="pokedexes", rows=written, skipped=skipped)
