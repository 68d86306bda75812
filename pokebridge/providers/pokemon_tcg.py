"""
Pokemon TCG API (Catalog A) provider
"""
import logging
from typing import Any, Dict, List, Optional, Union

from ..bridge_config import BridgeConfig
from ..errors import ParseFailure
from ..pricing_builder import tcgplayer_prices
from .abstract import AbstractProvider

LOGGER = logging.getLogger(__name__)


class PokemonTcgProvider(AbstractProvider):
    """
    Pokemon TCG API container
    """

    page_size: int = 250

    def __init__(self, config: BridgeConfig) -> None:
        super().__init__(config, config.catalog_a_base_url)

    def _build_http_header(self) -> Dict[str, str]:
        """
        Construct the Authorization header for the Pokemon TCG API
        :return: Authorization header
        """
        api_key = self.config.catalog_a_api_key
        if not api_key:
            LOGGER.warning("Pokemon TCG API key missing. Requests are rate limited")
            return {}
        return {"X-Api-Key": api_key}

    def download(
        self, url: str, params: Optional[Dict[str, Union[str, int]]] = None
    ) -> Any:
        """
        Download content from the Pokemon TCG API
        Api calls always return JSON
        :param url: URL to download from
        :param params: Options for URL download
        """
        return self._get_json(url, params)

    def _download_all_pages(
        self, url: str, params: Dict[str, Union[str, int]]
    ) -> List[Dict[str, Any]]:
        """
        Walk a paged listing endpoint until every entry has been read
        :param url: Listing endpoint
        :param params: Base query parameters
        :return: Concatenated "data" arrays
        """
        results: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = self.download(
                url, {**params, "page": page, "pageSize": self.page_size}
            )
            if not response:
                break

            if not isinstance(response.get("data"), list):
                raise ParseFailure(self.get_class_name(), f"{url} has no data array")

            results.extend(response["data"])
            total_count = int(response.get("totalCount", len(results)))
            if not response["data"] or len(results) >= total_count:
                break
            page += 1

        return results

    def list_sets(self, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Download every set (the catalog only publishes English sets)
        :param language: Ignored
        :return: Raw set objects
        """
        sets = self._download_all_pages(f"{self.base_url}/sets", {"orderBy": "releaseDate"})
        LOGGER.info(f"Pokemon TCG API returned {len(sets)} sets")
        return sets

    def list_cards_in_set(self, set_code: Union[str, int]) -> List[Dict[str, Any]]:
        """
        Download every card in a set
        :param set_code: Pokemon TCG set id ("sv8pt5")
        :return: Raw card objects
        """
        cards = self._download_all_pages(
            f"{self.base_url}/cards", {"q": f"set.id:{set_code}"}
        )
        LOGGER.debug(f"Pokemon TCG API returned {len(cards)} cards for {set_code}")
        return cards

    def get_card(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        Download a single card
        :param card_id: Pokemon TCG card id ("sv8pt5-161")
        :return: Raw card object or None
        """
        response = self.download(f"{self.base_url}/cards/{card_id}")
        if not response:
            return None
        return response.get("data")

    def get_card_pricing(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        The TCGPlayer price block embedded in a card
        :param card_id: Pokemon TCG card id
        :return: {"holofoil": {...}, "normal": {...}, ...} or None
        """
        card = self.get_card(card_id)
        if not card:
            return None
        return tcgplayer_prices(card) or None
