"""
Catalog providers
"""

from .abstract import AbstractProvider
from .pokedata import PokeDataProvider
from .pokemon_tcg import PokemonTcgProvider

__all__ = [
    "AbstractProvider",
    "PokeDataProvider",
    "PokemonTcgProvider",
]
