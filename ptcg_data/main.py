"""
PTCG Data - Application Entrypoint

Configures structlog and dispatches to one of two commands:

    ptcg-data migrate [--data-dir DIR] [--database-url URL] [--json]
    ptcg-data serve   [--host HOST] [--port PORT]

Run via:
    python -m ptcg_data.main migrate
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import structlog
import uvicorn

from ptcg_data import __version__
from ptcg_data.config import settings
from ptcg_data.db import create_db_engine, table_counts
from ptcg_data.exceptions import MigrationAbortedError
from ptcg_data.pipeline.migrate import MigrationReport, Migrator


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Set up structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_logs: JSON lines when True, console rendering otherwise.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure stdlib logging first (for uvicorn and other libraries)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _print_report(
    report: MigrationReport, counts: dict[str, int] | None, as_json: bool = False
) -> None:
    if as_json:
        print(json.dumps({**report.to_dict(), "counts": counts}))
        return

    print("\nMigration steps:")
    for step in report.steps:
        line = f"  {step.name:<10} {step.status.value:<8} rows={step.rows} skipped={step.skipped}"
        if step.error:
            line += f" error={step.error}"
        print(line)
    if counts is not None:
        print("\nDatabase statistics:")
        for table, count in counts.items():
            print(f"  {table:<18} {count}")


async def run_migration(
    data_dir: str | None = None,
    database_url: str | None = None,
    json_report: bool = False,
) -> int:
    """
    Run a full migration. Returns the process exit code.

    Exit code is 1 when an authoritative step aborted the run. With
    json_report the step report and table counts print as one JSON object.
    """
    logger = structlog.get_logger(__name__)
    engine, session_factory = create_db_engine(database_url)
    try:
        migrator = Migrator(engine, session_factory, data_dir=data_dir)
        try:
            report = await migrator.migrate_all()
        except MigrationAbortedError as e:
            logger.error(
                "migration_aborted",
                step=e.step,
                error=str(e.__cause__),
                error_type=type(e.__cause__).__name__,
            )
            _print_report(e.report, None, as_json=json_report)
            return 1

        counts = await table_counts(session_factory)
        logger.info("migration_stats", **counts)
        _print_report(report, counts, as_json=json_report)
        return 0
    finally:
        await engine.dispose()


def serve(host: str | None = None, port: int | None = None) -> None:
    """Start the HTTP API under uvicorn. SIGINT/SIGTERM run the app shutdown."""
    from ptcg_data.api import create_app

    logger = structlog.get_logger(__name__)
    host = host or settings.HOST
    port = port or settings.PORT
    logger.info("server_starting", host=host, port=port, version=__version__)
    uvicorn.run(create_app(), host=host, port=port, log_config=None)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ptcg-data", description="Pokemon TCG data API")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="Load datasets into the database")
    migrate.add_argument("--data-dir", default=None, help="Dataset root (default: DATA_DIR)")
    migrate.add_argument("--database-url", default=None)
    migrate.add_argument("--json", action="store_true", help="Print the report as JSON")

    serve_cmd = sub.add_parser("serve", help="Run the HTTP API")
    serve_cmd.add_argument("--host", default=None)
    serve_cmd.add_argument("--port", type=int, default=None)

    return parser


def cli(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level, json_logs=settings.LOG_JSON)

    logger = structlog.get_logger(__name__)
    logger.info("ptcg_data_startup", command=args.command, version=__version__)

    if args.command == "migrate":
        sys.exit(asyncio.run(run_migration(args.data_dir, args.database_url, args.json)))
    serve(args.host, args.port)


if __name__ == "__main__":
    cli()
