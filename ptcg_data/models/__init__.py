"""
Models package - export all SQLAlchemy models.
"""

from ptcg_data.models.base import Base
from ptcg_data.models.card import Card, CardSet, Deck
from ptcg_data.models.pokedex import Pokedex, PokedexEntry
from ptcg_data.models.reference import (
    PokemonAbility,
    PokemonMove,
    PokemonSpecies,
    PokemonType,
)

__all__ = [
    "Base",
    "Card",
    "CardSet",
    "Deck",
    "Pokedex",
    "PokedexEntry",
    "PokemonAbility",
    "PokemonMove",
    "PokemonSpecies",
    "PokemonType",
]
