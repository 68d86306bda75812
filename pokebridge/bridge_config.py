"""
pokebridge Configuration Service
"""

import configparser
import logging
import os
import pathlib
from typing import Dict, Optional, Tuple

from . import constants

# (section, option) => environment variable that overrides it
ENVIRONMENT_OVERRIDES: Dict[Tuple[str, str], str] = {
    ("Bridge", "use_cache"): "POKEBRIDGE_USE_CACHE",
    ("CatalogA", "base_url"): "POKEMON_TCG_API_BASE_URL",
    ("CatalogA", "api_key"): "POKEMON_TCG_API_KEY",
    ("CatalogB", "base_url"): "POKEDATA_API_BASE_URL",
    ("CatalogB", "api_key"): "POKEDATA_API_KEY",
    ("Cache", "enabled"): "ENABLE_REDIS_CACHE",
    ("Cache", "redis_url"): "REDIS_CONNECTION_STRING",
    ("Cache", "sets_ttl"): "CACHE_TTL_SETS",
    ("Cache", "cards_ttl"): "CACHE_TTL_CARDS",
    ("Cache", "pricing_ttl"): "CACHE_TTL_PRICING",
    ("SetMapping", "artifact_path"): "SET_MAPPING_PATH",
}


class BridgeConfig:
    """
    Configuration Class that loads in the appropriate configuration file
    and provides the contents for the running program.
    Environment variables take precedence over the file.
    """

    logger: logging.Logger
    config_parser: configparser.ConfigParser
    version: str
    use_cache: bool

    def __init__(
        self,
        config_path: Optional[pathlib.Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config_parser = configparser.ConfigParser()
        self.environ = dict(os.environ if environ is None else environ)

        config_path = config_path or constants.CONFIG_PATH
        if config_path.is_file():
            self.logger.info(f"Loading configuration from {config_path}")
            self.config_parser.read(str(config_path))
        else:
            self.logger.warning(
                f"{config_path.name} not found, using defaults and environment"
            )

        self.version = self.get("Bridge", "version", fallback="0.1.0")
        self.use_cache = self.get_boolean("Bridge", "use_cache", False)

    @classmethod
    def from_string(
        cls, contents: str, environ: Optional[Dict[str, str]] = None
    ) -> "BridgeConfig":
        """
        Build a configuration from INI text (primarily for tests)
        :param contents: INI formatted configuration
        :param environ: Environment to read overrides from
        :return Configuration
        """
        config = cls(pathlib.Path(os.devnull), environ=environ or {})
        config.config_parser.read_string(contents)
        config.version = config.get("Bridge", "version", fallback="0.1.0")
        config.use_cache = config.get_boolean("Bridge", "use_cache", False)
        return config

    def get(self, section: str, option: str, fallback: str = "") -> str:
        """
        Get a specific value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default value to use if key not found in section
        :returns Configuration value to use
        """
        env_name = ENVIRONMENT_OVERRIDES.get((section, option))
        if env_name and self.environ.get(env_name):
            return self.environ[env_name]
        if self.has_option(section, option):
            return self.config_parser.get(section, option, fallback=fallback)
        return fallback

    def get_boolean(self, section: str, option: str, fallback: bool = False) -> bool:
        """
        Get a specific value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default value to use if key not found in section
        :returns Configuration value to use (as a Boolean)
        """
        value = self.get(section, option)
        if not value:
            return fallback
        return value.strip().lower() in ("1", "true", "yes", "on")

    def get_int(self, section: str, option: str, fallback: int = 0) -> int:
        """
        Get a specific value from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default value to use if key not found or not a number
        :returns Configuration value to use (as an Integer)
        """
        value = self.get(section, option)
        if not value:
            return fallback
        try:
            return int(value)
        except ValueError:
            self.logger.warning(
                f"[{section}] {option}={value!r} is not a number, using {fallback}"
            )
            return fallback

    def get_path(
        self, section: str, option: str, fallback: pathlib.Path
    ) -> pathlib.Path:
        """
        Get a filesystem path from configuration
        :param section: Section header
        :param option: Key in section
        :param fallback: Default path
        :returns Expanded path
        """
        value = self.get(section, option)
        return pathlib.Path(value).expanduser() if value else fallback

    def has_section(self, section: str) -> bool:
        """
        Check if Configuration has a specific section
        :param section: Section header to find
        :return Does Section header exist
        """
        return self.config_parser.has_section(section)

    def has_option(self, section: str, option: str) -> bool:
        """
        Check if Configuration has a specific option in a specific section
        and has a defined value (ala not VAR=)
        :param section: Section header to find
        :param option: Option to find in section
        :return Does option exist in section
        """
        return (
            self.config_parser.has_option(section, option)
            and len(str(self.config_parser.get(section, option))) > 0
        )

    @property
    def catalog_a_base_url(self) -> str:
        return self.get("CatalogA", "base_url", constants.CATALOG_A_BASE_URL)

    @property
    def catalog_a_api_key(self) -> str:
        return self.get("CatalogA", "api_key")

    @property
    def catalog_b_base_url(self) -> str:
        return self.get("CatalogB", "base_url", constants.CATALOG_B_BASE_URL)

    @property
    def catalog_b_api_key(self) -> str:
        return self.get("CatalogB", "api_key")

    @property
    def cache_enabled(self) -> bool:
        return self.get_boolean("Cache", "enabled", True)

    @property
    def redis_url(self) -> str:
        return self.get("Cache", "redis_url")

    @property
    def sets_ttl(self) -> int:
        return self.get_int("Cache", "sets_ttl", constants.DEFAULT_SETS_TTL)

    @property
    def cards_ttl(self) -> int:
        return self.get_int("Cache", "cards_ttl", constants.DEFAULT_CARDS_TTL)

    @property
    def pricing_ttl(self) -> int:
        return self.get_int("Cache", "pricing_ttl", constants.DEFAULT_PRICING_TTL)

    @property
    def single_flight(self) -> bool:
        return self.get_boolean("Cache", "single_flight", False)

    @property
    def pricing_stale_hours(self) -> int:
        return self.get_int(
            "Pricing", "stale_after_hours", constants.DEFAULT_PRICING_STALE_HOURS
        )

    @property
    def max_page_size(self) -> int:
        return self.get_int("Paging", "max_page_size", constants.DEFAULT_MAX_PAGE_SIZE)

    @property
    def set_mapping_path(self) -> pathlib.Path:
        return self.get_path(
            "SetMapping", "artifact_path", constants.SET_MAPPING_PATH
        )

    @property
    def manual_set_mappings_path(self) -> pathlib.Path:
        return self.get_path(
            "SetMapping", "manual_overrides", constants.MANUAL_SET_MAPPINGS_PATH
        )

    @property
    def http_retries(self) -> int:
        return self.get_int("Http", "retries", 8)

    @property
    def http_timeout(self) -> int:
        return self.get_int("Http", "timeout", 5)
