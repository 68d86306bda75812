"""
PokeData API (Catalog B) provider
"""
import logging
from typing import Any, Dict, List, Optional, Union

from ..bridge_config import BridgeConfig
from ..errors import ParseFailure
from .abstract import AbstractProvider

LOGGER = logging.getLogger(__name__)


class PokeDataProvider(AbstractProvider):
    """
    PokeData API container
    """

    def __init__(self, config: BridgeConfig) -> None:
        super().__init__(config, config.catalog_b_base_url)

    def _build_http_header(self) -> Dict[str, str]:
        """
        Construct the Authorization header for PokeData
        :return: Authorization header
        """
        api_key = self.config.catalog_b_api_key
        if not api_key:
            LOGGER.warning("PokeData API key missing. Requests will be rejected")
            return {}
        return {"Authorization": f"Bearer {api_key}"}

    def download(
        self, url: str, params: Optional[Dict[str, Union[str, int]]] = None
    ) -> Any:
        """
        Download content from PokeData
        Api calls always return JSON
        :param url: URL to download from
        :param params: Options for URL download
        """
        return self._get_json(url, params)

    def _expect_list(self, payload: Any, what: str) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ParseFailure(self.get_class_name(), f"Unexpected {what} payload")
        return payload

    def list_sets(self, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Download every set, optionally for one language only
        :param language: "ENGLISH", "JAPANESE", ...
        :return: Raw set objects
        """
        sets = self._expect_list(self.download(f"{self.base_url}/sets"), "sets")
        if language:
            sets = [entry for entry in sets if entry.get("language") == language]
        LOGGER.info(f"PokeData returned {len(sets)} sets")
        return sets

    def list_cards_in_set(self, set_code: Union[str, int]) -> List[Dict[str, Any]]:
        """
        Download every card in a set
        :param set_code: PokeData numeric set id
        :return: Raw card objects ({id, num, name, set_id, ...})
        """
        cards = self._expect_list(
            self.download(f"{self.base_url}/set", {"set_id": set_code}), "set"
        )
        LOGGER.debug(f"PokeData returned {len(cards)} cards for set {set_code}")
        return cards

    def get_card(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        Download a card with its full details and pricing
        :param card_id: PokeData numeric card id
        :return: Raw card object or None
        """
        payload = self.download(
            f"{self.base_url}/pricing", {"id": card_id, "asset_type": "CARD"}
        )
        if not payload:
            return None
        if not isinstance(payload, dict):
            raise ParseFailure(self.get_class_name(), f"Unexpected card {card_id} payload")
        return payload

    def get_card_pricing(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        Pricing for a card, keyed by provider label ("PSA 10.0", "eBay Raw", ...)
        :param card_id: PokeData numeric card id
        :return: {label: {"currency": str, "value": float}} or None
        """
        card = self.get_card(card_id)
        if not card:
            return None
        return card.get("pricing") or None
