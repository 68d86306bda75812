"""
Retryable Session to download content
"""
import datetime
import functools
from typing import Union

import requests
import requests.adapters
import requests_cache
import urllib3

from . import constants
from .bridge_config import BridgeConfig


def retryable_session(
    config: BridgeConfig,
    cache_name: str = "pokebridge",
) -> Union[requests.Session, requests_cache.CachedSession]:
    """
    Session with requests to allow for re-attempts at downloading missing data
    :param config: Configuration deciding retries, timeout and disk caching
    :param cache_name: Name of the on-disk cache, one per provider
    :return: Session that does the downloading
    """
    session: Union[requests.Session, requests_cache.CachedSession]
    retries = config.http_retries

    if config.use_cache:
        constants.CACHE_PATH.mkdir(parents=True, exist_ok=True)
        session = requests_cache.CachedSession(
            cache_name=str(constants.CACHE_PATH.joinpath(cache_name)),
            expire_after=datetime.timedelta(days=1),
            stale_if_error=True,
        )
    else:
        session = requests.Session()

    retry = urllib3.util.retry.Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=0.3,
        status_forcelist=(500, 502, 504),
    )

    adapter = requests.adapters.HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.request = functools.partial(  # type: ignore
        session.request, timeout=config.http_timeout
    )

    session.headers.update(
        {"User-Agent": f"pokebridge/{config.version}", "Accept": "application/json"}
    )
    return session
