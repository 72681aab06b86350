"""
PTCG Data - Store handle.

The async engine + session factory pair created here is the single store
handle for the process. The entry point creates it once and passes it to the
migration orchestrator and the HTTP app; nothing else opens the database.

Every pooled SQLite connection gets WAL journaling and enforced foreign keys.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ptcg_data.config import settings
from ptcg_data.exceptions import QueryError
from ptcg_data.models import Base

logger = structlog.get_logger(__name__)

# Tables reported by stats/health, in migration order.
COUNTED_TABLES = (
    "sets",
    "cards",
    "decks",
    "pokemon_types",
    "pokemon_moves",
    "pokemon_abilities",
    "pokemon_species",
    "pokedexes",
    "pokedex_entries",
)


def _apply_sqlite_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(
    database_url: str | None = None,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create the SQLAlchemy async engine and session factory.

    Args:
        database_url: SQLAlchemy URL; defaults to settings.DATABASE_URL.

    Returns:
        (engine, session_factory) tuple.
    """
    url = database_url or settings.DATABASE_URL
    logger.info("database_engine_initializing", database_url=url)

    engine = create_async_engine(url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _apply_sqlite_pragmas)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("database_engine_ready")
    return engine, session_factory


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table and index that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("database_schema_ready", tables=len(Base.metadata.tables))


async def ping(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Connectivity probe. Returns the number of card rows."""
    async with session_factory() as session:
        result = await session.execute(text("SELECT COUNT(*) FROM cards"))
        return int(result.scalar_one())


async def table_counts(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    """Row count per known table."""
    counts: dict[str, int] = {}
    async with session_factory() as session:
        for table in COUNTED_TABLES:
            result = await session.execute(text(f"SELECT COUNT(*) FROM {table}"))
            counts[table] = int(result.scalar_one())
    return counts


async def fetch_rows(
    session_factory: async_sessionmaker[AsyncSession],
    sql: str,
    params: dict[str, Any] | None = None,
) -> list[RowMapping]:
    """
    Run a read query and return its rows as mappings.

    Raises:
        QueryError: when the store rejects the query.
    """
    try:
        async with session_factory() as session:
            result = await session.execute(text(sql), params or {})
            return list(result.mappings().all())
    except SQLAlchemyError as e:
        logger.error("database_query_failed", error=str(e), error_type=type(e).__name__)
        raise QueryError(f"Query failed: {e}") from e
