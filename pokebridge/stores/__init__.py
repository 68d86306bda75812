"""
Cache and persistence tiers
"""

from .card_store import AbstractCardStore, MemoryCardStore
from .redis_cache import RedisCache, VolatileCache

__all__ = [
    "AbstractCardStore",
    "MemoryCardStore",
    "RedisCache",
    "VolatileCache",
]
