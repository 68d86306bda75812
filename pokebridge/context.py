"""
Composition root: builds every pokebridge component from one configuration
"""
from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass

from .bridge_config import BridgeConfig
from .card_enrichment import CardEnrichmentOrchestrator
from .providers import PokeDataProvider, PokemonTcgProvider
from .set_mapping_builder import SetMappingBuilder
from .set_mapping_index import SetMappingIndex
from .single_flight import SingleFlight
from .stores import AbstractCardStore, MemoryCardStore, RedisCache, VolatileCache

LOGGER = logging.getLogger(__name__)


@dataclass
class BridgeContext:
    """
    Explicitly wired components. Tests build one by hand with fakes,
    everything else goes through from_config().
    """

    config: BridgeConfig
    catalog_a: PokemonTcgProvider
    catalog_b: PokeDataProvider
    store: AbstractCardStore
    cache: VolatileCache
    set_index: SetMappingIndex
    orchestrator: CardEnrichmentOrchestrator

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig | None = None,
        store: AbstractCardStore | None = None,
    ) -> BridgeContext:
        """
        :param config: Configuration (default: the bundled properties file plus environment)
        :param store: Persistent store (default: in process)
        :return Wired context
        """
        config = config or BridgeConfig()
        catalog_a = PokemonTcgProvider(config)
        catalog_b = PokeDataProvider(config)
        store = store or MemoryCardStore()
        cache = RedisCache(config.redis_url, enabled=config.cache_enabled)
        set_index = SetMappingIndex(config.set_mapping_path)

        orchestrator = CardEnrichmentOrchestrator(
            catalog_a,
            catalog_b,
            store,
            cache,
            set_index,
            cards_ttl=config.cards_ttl,
            sets_ttl=config.sets_ttl,
            pricing_ttl=config.pricing_ttl,
            pricing_stale_hours=config.pricing_stale_hours,
            max_page_size=config.max_page_size,
            single_flight=SingleFlight() if config.single_flight else None,
        )
        LOGGER.debug(f"pokebridge {config.version} wired (single flight: {config.single_flight})")

        return cls(
            config=config,
            catalog_a=catalog_a,
            catalog_b=catalog_b,
            store=store,
            cache=cache,
            set_index=set_index,
            orchestrator=orchestrator,
        )

    def set_mapping_builder(self) -> SetMappingBuilder:
        return SetMappingBuilder.from_config(self.config)

    @property
    def set_mapping_path(self) -> pathlib.Path:
        return self.config.set_mapping_path
