"""
PTCG Data - Set, Card and Deck Models

Authoritative TCG data loaded from the local dataset. List and map fields are
stored as JSON text blobs; only the pipeline normalizer writes them and only
the query transform reads them.

Card ids follow the dataset convention "{set_id}-{number}" (e.g. "base1-4").
"""

from __future__ import annotations

from sqlalchemy import INTEGER, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ptcg_data.models.base import Base


class CardSet(Base):
    """A release/product grouping of cards, keyed by its short set code."""

    __tablename__ = "sets"

    id: Mapped[str] = mapped_column(String, primary_key=True, comment="Set code (e.g., 'base1')")
    name: Mapped[str] = mapped_column(String, nullable=False)
    series: Mapped[str | None] = mapped_column(String, nullable=True)
    printed_total: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    total: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    legalities: Mapped[str | None] = mapped_column(Text, nullable=True, comment="JSON object")
    ptcgo_code: Mapped[str | None] = mapped_column(String, nullable=True)
    release_date: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Release date as YYYY/MM/DD"
    )
    updated_at: Mapped[str | None] = mapped_column(String, nullable=True)
    images: Mapped[str | None] = mapped_column(Text, nullable=True, comment="JSON object")
    year: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Derived from release_date at ingest time"
    )
    extras: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="JSON object of unrecognized source keys"
    )

    __table_args__ = (
        Index("idx_sets_series", "series"),
        Index("idx_sets_year", "year"),
    )

    def __repr__(self) -> str:
        return f"<CardSet id={self.id!r} name={self.name!r} year={self.year!r}>"


class Card(Base):
    """A single collectible card belonging to exactly one set."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String, primary_key=True, comment="{set_id}-{number}")
    name: Mapped[str] = mapped_column(String, nullable=False)
    supertype: Mapped[str | None] = mapped_column(String, nullable=True)
    subtypes: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    level: Mapped[str | None] = mapped_column(String, nullable=True)
    hp: Mapped[str | None] = mapped_column(String, nullable=True)
    types: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    evolves_from: Mapped[str | None] = mapped_column(String, nullable=True)
    evolves_to: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    abilities: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    attacks: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    weaknesses: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    resistances: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    retreat_cost: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    converted_retreat_cost: Mapped[int | None] = mapped_column(INTEGER, nullable=True)
    number: Mapped[str | None] = mapped_column(String, nullable=True)
    artist: Mapped[str | None] = mapped_column(String, nullable=True)
    rarity: Mapped[str | None] = mapped_column(String, nullable=True)
    flavor_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    national_pokedex_numbers: Mapped[str] = mapped_column(
        Text, nullable=False, default="[]", comment="JSON array of reference numbers"
    )
    legalities: Mapped[str | None] = mapped_column(Text, nullable=True)
    images: Mapped[str | None] = mapped_column(Text, nullable=True)
    rules: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    extras: Mapped[str | None] = mapped_column(Text, nullable=True)
    set_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("sets.id"), nullable=True
    )

    __table_args__ = (
        Index("idx_cards_set_id", "set_id"),
        Index("idx_cards_name", "name"),
        Index("idx_cards_supertype", "supertype"),
        Index("idx_cards_rarity", "rarity"),
        Index("idx_cards_number", "number"),
    )

    def __repr__(self) -> str:
        return f"<Card id={self.id!r} name={self.name!r} set_id={self.set_id!r}>"


class Deck(Base):
    """A preconstructed deck list shipped with a set."""

    __tablename__ = "decks"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    set_id: Mapped[str | None] = mapped_column(String, ForeignKey("sets.id"), nullable=True)
    cards: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    def __repr__(self) -> str:
        return f"<Deck id={self.id!r} set_id={self.set_id!r}>"
