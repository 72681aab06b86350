"""
PTCG Data - Pokemon Reference Models

Independent reference entities from the external flat-file dataset. They have
no foreign keys to cards or sets; clients join them by name.
"""

from __future__ import annotations

from sqlalchemy import INTEGER, REAL, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ptcg_data.models.base import Base


class PokemonType(Base):
    __tablename__ = "pokemon_types"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    is_canonical: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)


class PokemonMove(Base):
    __tablename__ = "pokemon_moves"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    ps_name: Mapped[str | None] = mapped_column(String, nullable=True)
    generation: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    power: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    accuracy: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    pp: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    priority: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    is_z: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    is_gmax: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)


class PokemonAbility(Base):
    __tablename__ = "pokemon_abilities"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    generation: Mapped[int | None] = mapped_column(INTEGER, nullable=True)


class PokemonSpecies(Base):
    """Species keyed by national dex number. List/map fields are JSON blobs."""

    __tablename__ = "pokemon_species"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    types: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    abilities: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    hidden_abilities: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    base_stats: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    height: Mapped[float | None] = mapped_column(REAL, nullable=True)
    weight: Mapped[float | None] = mapped_column(REAL, nullable=True)
    generation: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    evolution_chain: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
