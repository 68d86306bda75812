"""
pokebridge Constants that cannot be changed and are hardcoded intentionally
"""

import datetime
import os
import pathlib
from typing import Dict, Tuple

TOP_LEVEL_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
RESOURCE_PATH: pathlib.Path = TOP_LEVEL_DIR.joinpath("pokebridge").joinpath("resources")
CONFIG_PATH: pathlib.Path = RESOURCE_PATH.joinpath("pokebridge.properties")
ENV_OUT_PATH: pathlib.Path = (
    pathlib.Path(os.environ.get("POKEBRIDGE_OUTPUT_PATH", TOP_LEVEL_DIR))
    .expanduser()
    .resolve()
)
OUTPUT_PATH: pathlib.Path = ENV_OUT_PATH.joinpath("output")

LOG_PATH: pathlib.Path = ENV_OUT_PATH.joinpath("pokebridge_logs")

CACHE_PATH: pathlib.Path = TOP_LEVEL_DIR.joinpath(".pokebridge_cache")

SET_MAPPING_PATH: pathlib.Path = RESOURCE_PATH.joinpath("set_mapping.json")
MANUAL_SET_MAPPINGS_PATH: pathlib.Path = RESOURCE_PATH.joinpath(
    "manual_set_mappings.json"
)

BUILD_DATE: str = datetime.datetime.today().strftime("%Y-%m-%d")

CATALOG_A_BASE_URL: str = "https://api.pokemontcg.io/v2"
CATALOG_B_BASE_URL: str = "https://www.pokedata.io/v0"

# Only English Catalog B sets take part in set matching
CATALOG_B_MATCH_LANGUAGE: str = "ENGLISH"

# Prefix used to keep Catalog B numeric card ids apart from Catalog A ids
CATALOG_B_CARD_PREFIX: str = "catalogB-"

MAX_RELEASE_DATE_DELTA_DAYS: int = 90
MIN_SHARED_NAME_TOKENS: int = 2
MIN_NAME_TOKEN_LENGTH: int = 3
ERA_PREFIXES: Tuple[str, ...] = ("ex", "xy", "sm", "swsh", "sv")
NAME_SUFFIXES: Tuple[str, ...] = ("base", "set")

CURRENT_SET_WINDOW_DAYS: int = 365

DEFAULT_SETS_TTL: int = 7 * 24 * 60 * 60
DEFAULT_CARDS_TTL: int = 24 * 60 * 60
DEFAULT_PRICING_TTL: int = 24 * 60 * 60
DEFAULT_PRICING_STALE_HOURS: int = 24
DEFAULT_MAX_PAGE_SIZE: int = 500

PSA_GRADES: Tuple[str, ...] = tuple(f"{grade}.0" for grade in range(1, 11))
CGC_GRADES: Tuple[str, ...] = (
    "1.0",
    "2.0",
    "3.0",
    "4.0",
    "5.0",
    "6.0",
    "7.0",
    "7.5",
    "8.0",
    "8.5",
    "9.0",
    "9.5",
    "10.0",
)
RAW_PRICE_KEYS: Dict[str, str] = {
    "eBay Raw": "ebay_raw",
    "TCGPlayer": "tcg_player",
    "Pokedata Raw": "catalog_b_raw",
}
