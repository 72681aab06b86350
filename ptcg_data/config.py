"""
PTCG Data - Configuration & Constants

Every URL, file pattern, timeout and delay lives here. Components take these
values as constructor arguments that default to `settings`, so tests can
override them without touching the environment.

Usage:
    from ptcg_data.config import settings
"""

from __future__ import annotations

from enum import Enum

from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class EntityKind(str, Enum):
    """Record kinds understood by the normalizer and the migration steps."""
    SET = "set"
    CARD = "card"
    DECK = "deck"
    TYPE = "type"
    MOVE = "move"
    ABILITY = "ability"
    SPECIES = "species"
    POKEDEX = "pokedex"
    POKEDEX_ENTRY = "pokedex_entry"


class StepStatus(str, Enum):
    """Outcome of a single migration step."""
    OK = "ok"
    SKIPPED = "skipped"     # nothing to do (e.g. no deck files)
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Central configuration for PTCG Data.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # -----------------------------------------------------------------------
    # Database
    # -----------------------------------------------------------------------
    DATABASE_URL: str = "sqlite+aiosqlite:///./pokemon_tcg.db"

    # -----------------------------------------------------------------------
    # Local datasets (authoritative card/set data)
    # -----------------------------------------------------------------------
    DATA_DIR: str = "."
    SETS_GLOB: str = "sets/*.json"
    CARDS_GLOB: str = "cards/en/**/*.json"
    DECKS_GLOB: str = "decks/en/**/*.json"

    # -----------------------------------------------------------------------
    # External reference data
    # -----------------------------------------------------------------------
    REFERENCE_DATASET_URL: str = (
        "https://raw.githubusercontent.com/MerelSollie/pkmn-dataset/main/data"
    )
    POKEAPI_BASE_URL: str = "https://pokeapi.co/api/v2"
    POKEDEX_LIST_LIMIT: int = 50
    POKEDEX_REQUEST_DELAY_SECONDS: float = 0.1   # third-party rate limit

    # -----------------------------------------------------------------------
    # HTTP client behaviour
    # -----------------------------------------------------------------------
    HTTP_TIMEOUT_SECONDS: float = 20.0
    HTTP_MAX_RETRIES: int = 2
    HTTP_BASE_BACKOFF_SECONDS: float = 1.0

    # -----------------------------------------------------------------------
    # Logging
    # -----------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # -----------------------------------------------------------------------
    # HTTP server
    # -----------------------------------------------------------------------
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: str = "*"   # comma-separated

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


# Singleton instance
settings = Settings()
