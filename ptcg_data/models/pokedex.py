"""
PTCG Data - Pokedex Models

Pokedexes come from the paginated PokeAPI. Entries are many-to-one to their
pokedex and keyed for upsert by (pokedex_id, entry_number), so re-running the
migration converges instead of appending duplicates.
"""

from __future__ import annotations

from sqlalchemy import INTEGER, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ptcg_data.models.base import Base


class Pokedex(Base):
    __tablename__ = "pokedexes"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    descriptions: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]", comment="JSON array of localized descriptions"
    )
    names: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]", comment="JSON array of localized names"
    )
    is_main_series: Mapped[int] = mapped_column(INTEGER, nullable=False, default=0)
    region: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<Pokedex id={self.id!r} name={self.name!r}>"


class PokedexEntry(Base):
    __tablename__ = "pokedex_entries"

    id: Mapped[int] = mapped_column(INTEGER, primary_key=True, autoincrement=True)
    pokedex_id: Mapped[int] = mapped_column(
        INTEGER, ForeignKey("pokedexes.id"), nullable=False
    )
    entry_number: Mapped[int] = mapped_column(INTEGER, nullable=False)
    pokemon_species_id: Mapped[int] = mapped_column(INTEGER, nullable=False)
    pokemon_species_name: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("pokedex_id", "entry_number", name="uq_pokedex_entries_dex_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<PokedexEntry pokedex_id={self.pokedex_id!r} "
            f"entry_number={self.entry_number!r} species={self.pokemon_species_name!r}>"
        )
