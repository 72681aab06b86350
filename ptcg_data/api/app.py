"""
PTCG Data - FastAPI application factory.

The app reads from the store handle in `app.state.session_factory`. When one
is passed to create_app() the caller owns it; otherwise the lifespan opens an
engine from settings and disposes it on shutdown.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ptcg_data import __version__
from ptcg_data.api.routers import cards, pokedexes, reference
from ptcg_data.config import settings
from ptcg_data.db import create_db_engine, ping, table_counts
from ptcg_data.exceptions import NotFoundError, QueryError

logger = structlog.get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = None
    if app.state.session_factory is None:
        engine, app.state.session_factory = create_db_engine()

    try:
        counts = await table_counts(app.state.session_factory)
        logger.info(
            "server_database_loaded",
            cards=counts["cards"],
            sets=counts["sets"],
            decks=counts["decks"],
        )
    except SQLAlchemyError as e:
        logger.error("server_database_stats_failed", error=str(e), error_type=type(e).__name__)

    try:
        yield
    finally:
        if engine is not None:
            await engine.dispose()
            logger.info("database_engine_disposed")


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    app = FastAPI(title="PTCG Data API", version=__version__, lifespan=lifespan)
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            query=str(request.url.query) or None,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(QueryError)
    async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
        logger.error("http_query_failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Failed to query the database"})

    app.include_router(cards.router, tags=["cards"])
    app.include_router(reference.router, tags=["reference"])
    app.include_router(pokedexes.router, tags=["pokedexes"])

    @app.get("/")
    async def root() -> dict:
        return {"message": "Pokemon TCG data api", "version": __version__, "docs": "/docs"}

    @app.get("/health")
    async def health(request: Request):
        try:
            cards_count = await ping(request.app.state.session_factory)
        except SQLAlchemyError as e:
            logger.error("health_check_failed", error=str(e), error_type=type(e).__name__)
            return JSONResponse(
                status_code=500,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": "Database connection failed",
                    "timestamp": _now(),
                },
            )
        return {
            "status": "healthy",
            "database": "connected",
            "cardsCount": cards_count,
            "timestamp": _now(),
        }

    return app
