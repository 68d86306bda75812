"""
Normalize provider pricing payloads into the pokebridge pricing shapes
"""
import logging
from typing import Any, Dict, Optional

import pydantic

from . import constants
from .bridge_models import EnhancedPricing, MarketPrice, PriceValue
from .errors import ParseFailure

LOGGER = logging.getLogger(__name__)

# Catalog A publishes one price block per printing variant
MARKET_PRICE_VARIANTS = (
    "holofoil",
    "normal",
    "reverseHolofoil",
    "1stEditionHolofoil",
    "1stEditionNormal",
    "unlimitedHolofoil",
)


def _positive_price(entry: Any) -> Optional[PriceValue]:
    """
    Pull a usable price out of a {"value": x, "currency": "USD"} entry
    :param entry: Raw pricing entry
    :return Price, or None if missing, malformed or not above zero
    """
    if not isinstance(entry, dict):
        return None
    try:
        value = float(entry.get("value") or 0)
    except (TypeError, ValueError):
        LOGGER.debug(f"Ignoring unparseable price {entry!r}")
        return None
    return PriceValue(value=value) if value > 0 else None


def build_enhanced_pricing(raw_pricing: Optional[Dict[str, Any]]) -> Optional[EnhancedPricing]:
    """
    Convert a PokeData pricing block into EnhancedPricing

    PSA grades are keyed by whole grade ("PSA 9.0" => "9"),
    CGC grades keep their half step ("CGC 8.5" => "8_5").
    Only prices above zero are kept.

    :param raw_pricing: {"PSA 10.0": {"value": 1.0, "currency": "USD"}, ...}
    :return Normalized pricing, or None if nothing usable was present
    :raises ParseFailure: The pricing block is not an object
    """
    if not raw_pricing:
        return None
    if not isinstance(raw_pricing, dict):
        raise ParseFailure(
            "PokeDataProvider", f"Pricing is a {type(raw_pricing).__name__}, not an object"
        )

    psa_grades = {}
    for grade in constants.PSA_GRADES:
        price = _positive_price(raw_pricing.get(f"PSA {grade}"))
        if price:
            psa_grades[grade.split(".")[0]] = price

    cgc_grades = {}
    for grade in constants.CGC_GRADES:
        price = _positive_price(raw_pricing.get(f"CGC {grade}"))
        if price:
            cgc_grades[grade.replace(".", "_")] = price

    raw_prices = {
        field_name: _positive_price(raw_pricing.get(label))
        for label, field_name in constants.RAW_PRICE_KEYS.items()
    }

    enhanced_pricing = EnhancedPricing(
        psa_grades=psa_grades or None,
        cgc_grades=cgc_grades or None,
        **raw_prices,
    )
    return None if enhanced_pricing.is_empty() else enhanced_pricing


def build_market_price(tcgplayer_prices: Optional[Dict[str, Any]]) -> Optional[MarketPrice]:
    """
    Pick the marketplace price block of the first printing variant
    that carries any price
    :param tcgplayer_prices: Catalog A card["tcgplayer"]["prices"]
    :return Market price or None
    """
    if not tcgplayer_prices:
        return None
    if not isinstance(tcgplayer_prices, dict):
        raise ParseFailure(
            "PokemonTcgProvider",
            f"Price block is a {type(tcgplayer_prices).__name__}, not an object",
        )

    for variant in MARKET_PRICE_VARIANTS:
        prices = tcgplayer_prices.get(variant)
        if not isinstance(prices, dict):
            continue

        try:
            market_price = MarketPrice(
                market=prices.get("market"),
                low=prices.get("low"),
                mid=prices.get("mid"),
                high=prices.get("high"),
            )
        except pydantic.ValidationError as error:
            raise ParseFailure(
                "PokemonTcgProvider", f"Malformed {variant} prices: {error}"
            ) from error
        if any(
            value is not None
            for value in (market_price.market, market_price.low, market_price.mid, market_price.high)
        ):
            return market_price

    return None


def tcgplayer_prices(card: Dict[str, Any]) -> Optional[Any]:
    """
    card["tcgplayer"]["prices"] of a Catalog A card, if it has a price block
    """
    tcgplayer = card.get("tcgplayer")
    if not isinstance(tcgplayer, dict):
        return None
    return tcgplayer.get("prices")
