"""
API for how catalog providers need to interact with other classes
"""
from __future__ import annotations

import abc
import logging
from typing import Any, Dict, List, Optional, Union

import requests
import requests_cache

from ..bridge_config import BridgeConfig
from ..errors import ExternalServiceUnavailable, ParseFailure
from ..retryable_session import retryable_session

LOGGER = logging.getLogger(__name__)


class AbstractProvider(abc.ABC):
    """
    Abstract class to indicate what catalog providers should provide.
    Payloads are returned raw; normalizing them is the caller's job.
    """

    class_id: str
    base_url: str
    session: Union[requests.Session, requests_cache.CachedSession]

    def __init__(self, config: BridgeConfig, base_url: str) -> None:
        super().__init__()
        self.class_id = ""
        self.config = config
        self.base_url = base_url.rstrip("/")
        self.session = retryable_session(config, self.get_class_name())
        self.session.headers.update(self._build_http_header())

    # Abstract Methods
    @abc.abstractmethod
    def _build_http_header(self) -> Dict[str, str]:
        """
        Construct the HTTP authorization header
        :return: Authorization header
        """

    @abc.abstractmethod
    def download(
        self, url: str, params: Optional[Dict[str, Union[str, int]]] = None
    ) -> Any:
        """
        Download an object from a service using appropriate authentication protocols
        :param url: URL to download content from
        :param params: Options to give to the GET request
        """

    @abc.abstractmethod
    def list_sets(self, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Every set the catalog publishes
        :param language: Only sets in this language, if the catalog has languages
        """

    @abc.abstractmethod
    def list_cards_in_set(self, set_code: Union[str, int]) -> List[Dict[str, Any]]:
        """
        Every card the catalog publishes for one set
        :param set_code: The catalog's own set identifier
        """

    @abc.abstractmethod
    def get_card(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        A single card, or None if the catalog does not know it
        :param card_id: The catalog's own card identifier
        """

    @abc.abstractmethod
    def get_card_pricing(self, card_id: Union[str, int]) -> Optional[Dict[str, Any]]:
        """
        Raw pricing payload for a card, or None if there is none
        :param card_id: The catalog's own card identifier
        """

    def set_session(self, session: requests.Session) -> None:
        """
        Override the HTTP session (primarily for test injection).
        :param session: Custom session to use for HTTP requests
        """
        self.session = session

    # Class Methods
    @classmethod
    def get_class_name(cls) -> str:
        """
        Get the name of the calling class
        :return: Calling class name
        """
        return cls.__name__

    def log_download(self, response: Any) -> None:
        """
        Log how the URL was acquired
        :param response: Response from Server
        """
        from_cache = (
            getattr(response, "from_cache", False) if self.config.use_cache else False
        )
        LOGGER.debug(f"Downloaded {response.url} (Cache = {from_cache})")

    def _get_json(
        self, url: str, params: Optional[Dict[str, Union[str, int]]] = None
    ) -> Optional[Any]:
        """
        GET a JSON document
        :param url: URL to download from
        :param params: Query parameters
        :return: Decoded JSON, or None on a 404
        """
        try:
            response = self.session.get(url, params=params)
        except requests.RequestException as exception:
            raise ExternalServiceUnavailable(
                self.get_class_name(), f"Unable to reach {url}: {exception}"
            ) from exception

        self.log_download(response)

        if response.status_code == 404:
            return None
        if not response.ok:
            raise ExternalServiceUnavailable(
                self.get_class_name(),
                f"{url} answered {response.status_code}: {response.reason}",
                response.status_code,
            )

        try:
            return response.json()
        except ValueError as exception:
            raise ParseFailure(
                self.get_class_name(), f"{url} did not return JSON: {exception}"
            ) from exception
