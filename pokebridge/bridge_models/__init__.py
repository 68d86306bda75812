"""
pokebridge data models
"""

from .cards import (
    CardImages,
    CardRecord,
    CardResult,
    CatalogSource,
    EnhancedPricing,
    MarketPrice,
    PageResult,
    PriceValue,
)
from .mapping import (
    MatchType,
    SetMapping,
    SetMappingArtifact,
    SetMappingMetadata,
    UnmappedCatalogASet,
    UnmappedCatalogBSet,
    UnmappedSets,
)
from .sets import CatalogASet, CatalogBSet

__all__ = [
    "CardImages",
    "CardRecord",
    "CardResult",
    "CatalogASet",
    "CatalogBSet",
    "CatalogSource",
    "EnhancedPricing",
    "MarketPrice",
    "MatchType",
    "PageResult",
    "PriceValue",
    "SetMapping",
    "SetMappingArtifact",
    "SetMappingMetadata",
    "UnmappedCatalogASet",
    "UnmappedCatalogBSet",
    "UnmappedSets",
]
