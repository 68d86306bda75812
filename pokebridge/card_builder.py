"""
Build CardRecords from raw catalog payloads, and the card id conventions
shared by the orchestrator and the stores
"""
import datetime
import logging
from typing import Any, Callable, Dict, Optional, TypeVar, Union

import pydantic

from . import constants
from .bridge_models import CardImages, CardRecord, CatalogSource
from .errors import ParseFailure
from .pricing_builder import build_enhanced_pricing, build_market_price, tcgplayer_prices
from .utils import utc_now

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def card_source(card_id: str) -> CatalogSource:
    """
    Which catalog a stored card id belongs to
    :param card_id: "sv8pt5-161" or "catalogB-73524"
    :return Origin catalog
    """
    if str(card_id).startswith(constants.CATALOG_B_CARD_PREFIX):
        return CatalogSource.CATALOG_B
    return CatalogSource.CATALOG_A


def catalog_b_card_id(numeric_id: Union[int, str]) -> str:
    """
    73524 => "catalogB-73524"
    """
    return f"{constants.CATALOG_B_CARD_PREFIX}{numeric_id}"


def catalog_b_numeric_id(card_id: str) -> Optional[int]:
    """
    "catalogB-73524" => 73524, anything else => None
    """
    if not str(card_id).startswith(constants.CATALOG_B_CARD_PREFIX):
        return None
    try:
        return int(str(card_id)[len(constants.CATALOG_B_CARD_PREFIX) :])
    except ValueError:
        return None


def catalog_a_partition(card_id: str) -> str:
    """
    Set id embedded in a Catalog A card id ("sv8pt5-161" => "sv8pt5")
    :param card_id: Catalog A card id
    :return Set id, or the whole id if it carries no "-"
    """
    return str(card_id).rsplit("-", 1)[0]


def _optional_pricing(build: Callable[[Any], T], raw_pricing: Any, card_id: Any) -> Optional[T]:
    """
    Normalize a card's embedded pricing, dropping it if it is malformed
    """
    try:
        return build(raw_pricing)
    except ParseFailure as error:
        LOGGER.warning(f"Ignoring pricing embedded in card {card_id}: {error}")
        return None


def build_catalog_a_card(
    payload: Dict[str, Any], now: Optional[datetime.datetime] = None
) -> CardRecord:
    """
    Convert a Pokemon TCG API card object into a CardRecord
    :param payload: Raw card object
    :param now: Update timestamp (default now)
    :return Card record
    """
    now = now or utc_now()
    try:
        set_payload = payload.get("set") or {}
        images = payload.get("images") or {}
        market_price = _optional_pricing(
            build_market_price, tcgplayer_prices(payload), payload.get("id")
        )
        return CardRecord(
            id=payload["id"],
            set_id=set_payload.get("id") or catalog_a_partition(payload["id"]),
            set_code=set_payload.get("ptcgoCode"),
            set_name=set_payload.get("name"),
            card_name=payload["name"],
            card_number=payload["number"],
            rarity=payload.get("rarity"),
            pricing=market_price,
            images=(
                CardImages(small=images["small"], large=images["large"])
                if images.get("small") and images.get("large")
                else None
            ),
            pricing_last_updated=now if market_price else None,
            last_updated=now,
            source=CatalogSource.CATALOG_A,
        )
    except (KeyError, TypeError, AttributeError, pydantic.ValidationError) as error:
        raise ParseFailure(
            "PokemonTcgProvider", f"Malformed card payload: {error!r}"
        ) from error


def build_catalog_b_card(
    payload: Dict[str, Any],
    set_code: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> CardRecord:
    """
    Convert a PokeData card object into a CardRecord.
    If the payload embeds pricing it is normalized straight away.
    :param payload: Raw card object ({id, num, name, set_id, set_name, set_code, ...})
    :param set_code: Set code to use when the payload has none
    :param now: Update timestamp (default now)
    :return Card record
    """
    now = now or utc_now()
    try:
        enhanced_pricing = _optional_pricing(
            build_enhanced_pricing, payload.get("pricing"), payload.get("id")
        )
        return CardRecord(
            id=catalog_b_card_id(payload["id"]),
            set_id=payload["set_id"],
            set_code=payload.get("set_code") or set_code,
            set_name=payload.get("set_name"),
            card_name=payload["name"],
            card_number=payload["num"],
            enhanced_pricing=enhanced_pricing,
            pricing_last_updated=now if enhanced_pricing else None,
            last_updated=now,
            source=CatalogSource.CATALOG_B,
        )
    except (KeyError, TypeError, AttributeError, pydantic.ValidationError) as error:
        raise ParseFailure(
            "PokeDataProvider", f"Malformed card payload: {error!r}"
        ) from error
