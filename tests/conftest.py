"""Pytest configuration and fixtures for pokebridge tests."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from pokebridge.bridge_config import BridgeConfig
from pokebridge.bridge_models import SetMappingArtifact
from pokebridge.card_enrichment import CardEnrichmentOrchestrator
from pokebridge.providers import PokeDataProvider, PokemonTcgProvider
from pokebridge.set_mapping_index import SetMappingIndex
from pokebridge.stores import MemoryCardStore, VolatileCache

TEST_CONFIG = """
[Bridge]
version=0.0.0-test

[CatalogA]
base_url=https://api.pokemontcg.test/v2
api_key=catalog-a-key

[CatalogB]
base_url=https://pokedata.test/v0
api_key=catalog-b-key

[Cache]
enabled=false

[Http]
retries=0
timeout=1
"""

CATALOG_A_URL = "https://api.pokemontcg.test/v2"
CATALOG_B_URL = "https://pokedata.test/v0"


class DictCache(VolatileCache):
    """Volatile cache held in a dict, values JSON round-tripped like Redis does."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def get(self, key: Any) -> Optional[Any]:
        raw_value = self.values.get(str(key))
        return None if raw_value is None else json.loads(raw_value)

    def set(self, key: Any, value: Any, ttl_seconds: int) -> bool:
        self.values[str(key)] = json.dumps(value)
        self.ttls[str(key)] = ttl_seconds
        return True

    def delete(self, key: Any) -> bool:
        self.ttls.pop(str(key), None)
        return self.values.pop(str(key), None) is not None

    def exists(self, key: Any) -> bool:
        return str(key) in self.values

    def clear(self, pattern: str = "*") -> int:
        count = len(self.values)
        self.values.clear()
        self.ttls.clear()
        return count


def catalog_a_card(
    number: str = "76", set_id: str = "sv1", name: str = "Pikachu", **extra: Any
) -> Dict[str, Any]:
    """Pokemon TCG API card object."""
    card = {
        "id": f"{set_id}-{number}",
        "name": name,
        "number": number,
        "rarity": "Common",
        "set": {"id": set_id, "name": "Scarlet & Violet", "ptcgoCode": "SVI"},
        "images": {
            "small": f"https://images.pokemontcg.io/{set_id}/{number}.png",
            "large": f"https://images.pokemontcg.io/{set_id}/{number}_hires.png",
        },
        "tcgplayer": {
            "prices": {"normal": {"low": 0.05, "mid": 0.2, "high": 2.0, "market": 0.12}}
        },
    }
    card.update(extra)
    return card


def catalog_b_card(
    card_id: int = 73524, number: str = "076", set_id: int = 510, name: str = "Pikachu", **extra: Any
) -> Dict[str, Any]:
    """PokeData card object."""
    card = {
        "id": card_id,
        "num": number,
        "name": name,
        "set_id": set_id,
        "set_name": "Scarlet & Violet Base",
        "set_code": "SVI",
        "language": "ENGLISH",
        "release_date": "Fri, 31 Mar 2023 00:00:00 GMT",
        "secret": False,
    }
    card.update(extra)
    return card


def catalog_b_pricing(psa_10: float = 120.0, raw: float = 1.5) -> Dict[str, Any]:
    """PokeData pricing block."""
    return {
        "PSA 10.0": {"currency": "USD", "value": psa_10},
        "PSA 9.0": {"currency": "USD", "value": 40.0},
        "PSA 8.0": {"currency": "USD", "value": 0.0},
        "CGC 8.5": {"currency": "USD", "value": 25.0},
        "eBay Raw": {"currency": "USD", "value": raw},
        "TCGPlayer": {"currency": "USD", "value": 1.25},
    }


def mapping_artifact(mappings: Optional[Dict[str, Dict[str, Any]]] = None) -> SetMappingArtifact:
    if mappings is None:
        mappings = {
            "sv1": {
                "catalogASetId": "sv1",
                "catalogBSetId": 510,
                "catalogBCode": "SVI",
                "matchType": "crossref_code",
            }
        }
    return SetMappingArtifact.from_json(
        {
            "metadata": {"generatedAt": "2025-01-01T00:00:00+00:00", "totalMappings": len(mappings)},
            "mappings": mappings,
        }
    )


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig.from_string(TEST_CONFIG)


@pytest.fixture
def volatile_cache() -> DictCache:
    return DictCache()


@pytest.fixture
def card_store() -> MemoryCardStore:
    return MemoryCardStore()


@pytest.fixture
def set_index() -> SetMappingIndex:
    return SetMappingIndex.from_artifact(mapping_artifact())


@pytest.fixture
def catalog_a() -> MagicMock:
    provider = MagicMock(spec=PokemonTcgProvider)
    provider.get_card.return_value = None
    provider.get_card_pricing.return_value = None
    provider.list_cards_in_set.return_value = []
    provider.list_sets.return_value = []
    return provider


@pytest.fixture
def catalog_b() -> MagicMock:
    provider = MagicMock(spec=PokeDataProvider)
    provider.get_card.return_value = None
    provider.get_card_pricing.return_value = None
    provider.list_cards_in_set.return_value = []
    provider.list_sets.return_value = []
    return provider


@pytest.fixture
def orchestrator(
    catalog_a: MagicMock,
    catalog_b: MagicMock,
    card_store: MemoryCardStore,
    volatile_cache: DictCache,
    set_index: SetMappingIndex,
) -> CardEnrichmentOrchestrator:
    return CardEnrichmentOrchestrator(
        catalog_a, catalog_b, card_store, volatile_cache, set_index
    )


@pytest.fixture
def catalog_files(tmp_path) -> Dict[str, Any]:
    """Write raw set catalogs to disk, return their paths."""

    def write(name: str, contents: Any) -> Any:
        path = tmp_path.joinpath(name)
        path.write_text(json.dumps(contents), encoding="utf-8")
        return path

    return {"write": write, "dir": tmp_path}


def raw_sets_a() -> List[Dict[str, Any]]:
    return [
        {"id": "sv1", "name": "Scarlet & Violet", "ptcgoCode": "SVI", "releaseDate": "2023/03/31"},
        {"id": "sv2", "name": "Paldea Evolved", "ptcgoCode": "PAL", "releaseDate": "2023/06/09"},
        {"id": "base1", "name": "Base", "releaseDate": "1999/01/09"},
    ]


def raw_sets_b() -> List[Dict[str, Any]]:
    return [
        {"id": 510, "code": "SVI", "name": "Scarlet & Violet Base", "language": "ENGLISH", "release_date": "Fri, 31 Mar 2023 00:00:00 GMT"},
        {"id": 513, "code": None, "name": "Paldea Evolved", "language": "ENGLISH", "release_date": "Fri, 09 Jun 2023 00:00:00 GMT"},
        {"id": 900, "code": None, "name": "Trainer Kit", "language": "ENGLISH", "release_date": "Fri, 01 Nov 2024 00:00:00 GMT"},
        {"id": 511, "code": "SVI", "name": "Scarlet & Violet", "language": "JAPANESE", "release_date": "Fri, 20 Jan 2023 00:00:00 GMT"},
    ]
