"""Dynamic version read from pokebridge.properties."""

import configparser
import pathlib

_config = configparser.ConfigParser()
_config.read(pathlib.Path(__file__).parent / "resources" / "pokebridge.properties")
__version__ = _config.get("Bridge", "version", fallback="0.1.0+fallback")
