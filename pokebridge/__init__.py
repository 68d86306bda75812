"""
pokebridge: cross-catalog Pokemon card identity, pricing and caching
MIT License
"""

from ._version import __version__
from .context import BridgeContext

__all__ = [
    "BridgeContext",
    "__version__",
]
