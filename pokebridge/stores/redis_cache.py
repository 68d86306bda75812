"""
Redis backed volatile cache

Every operation fails open: when Redis is disabled, unconfigured or
unreachable, reads miss and writes are dropped.
"""
import abc
import json
import logging
import time
from typing import Any, Optional, Union

import redis

from ..cache_keys import CacheKey

LOGGER = logging.getLogger(__name__)

KeyLike = Union[CacheKey, str]

CACHE_ERRORS = (redis.RedisError, OSError, ValueError, TypeError)


class VolatileCache(abc.ABC):
    """
    What the orchestrator needs from a volatile cache
    """

    @abc.abstractmethod
    def get(self, key: KeyLike) -> Optional[Any]:
        """
        :param key: Cache key
        :return Decoded value, or None on a miss
        """

    @abc.abstractmethod
    def set(self, key: KeyLike, value: Any, ttl_seconds: int) -> bool:
        """
        :param key: Cache key
        :param value: JSON serializable value
        :param ttl_seconds: Lifetime of the entry
        :return Was the value stored
        """

    @abc.abstractmethod
    def delete(self, key: KeyLike) -> bool:
        pass

    @abc.abstractmethod
    def exists(self, key: KeyLike) -> bool:
        pass

    @abc.abstractmethod
    def clear(self, pattern: str = "*") -> int:
        """
        :param pattern: Glob style key pattern
        :return Number of keys removed
        """


class RedisCache(VolatileCache):
    """
    Volatile cache on top of a Redis server.
    The connection is opened on first use; after a failed attempt
    the next one is made once reconnect_interval has passed.
    """

    redis_url: str
    enabled: bool
    reconnect_interval: float
    _client: Optional[redis.Redis]
    _last_failure: Optional[float]

    def __init__(
        self,
        redis_url: str,
        enabled: bool = True,
        client: Optional[redis.Redis] = None,
        reconnect_interval: float = 30.0,
    ) -> None:
        self.redis_url = redis_url
        self.enabled = enabled and bool(redis_url or client)
        self.reconnect_interval = reconnect_interval
        self._client = client
        self._last_failure = None

        if not self.enabled:
            LOGGER.info("Redis cache disabled, every lookup will miss")

    @property
    def client(self) -> Optional[redis.Redis]:
        """
        Connected client, or None if Redis cannot be used right now
        """
        if not self.enabled:
            return None
        if self._client is not None:
            return self._client
        if (
            self._last_failure is not None
            and time.monotonic() - self._last_failure < self.reconnect_interval
        ):
            return None

        try:
            client = redis.Redis.from_url(
                self.redis_url, decode_responses=True, socket_connect_timeout=5
            )
            client.ping()
        except CACHE_ERRORS as error:
            self._last_failure = time.monotonic()
            LOGGER.warning(f"Redis unavailable, continuing without it: {error}")
            return None

        LOGGER.info("Connected to Redis")
        self._client = client
        self._last_failure = None
        return self._client

    def _drop_client(self, error: Exception) -> None:
        LOGGER.warning(f"Redis error, continuing without it: {error}")
        if self.redis_url:
            self._client = None
            self._last_failure = time.monotonic()

    def get(self, key: KeyLike) -> Optional[Any]:
        client = self.client
        if client is None:
            return None

        try:
            raw_value = client.get(str(key))
        except CACHE_ERRORS as error:
            self._drop_client(error)
            return None

        if raw_value is None:
            LOGGER.debug(f"Cache miss {key}")
            return None

        try:
            value = json.loads(raw_value)
        except ValueError as error:
            LOGGER.warning(f"Discarding undecodable cache entry {key}: {error}")
            return None

        LOGGER.debug(f"Cache hit {key}")
        return value

    def set(self, key: KeyLike, value: Any, ttl_seconds: int) -> bool:
        client = self.client
        if client is None:
            return False

        try:
            client.setex(str(key), ttl_seconds, json.dumps(value))
        except CACHE_ERRORS as error:
            self._drop_client(error)
            return False
        return True

    def delete(self, key: KeyLike) -> bool:
        client = self.client
        if client is None:
            return False

        try:
            return bool(client.delete(str(key)))
        except CACHE_ERRORS as error:
            self._drop_client(error)
            return False

    def exists(self, key: KeyLike) -> bool:
        client = self.client
        if client is None:
            return False

        try:
            return bool(client.exists(str(key)))
        except CACHE_ERRORS as error:
            self._drop_client(error)
            return False

    def clear(self, pattern: str = "*") -> int:
        client = self.client
        if client is None:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            count = 0
            for start in range(0, len(keys), 1000):
                count += client.delete(*keys[start : start + 1000])
        except CACHE_ERRORS as error:
            self._drop_client(error)
            return 0

        LOGGER.info(f"Deleted {count} cache keys matching {pattern}")
        return count
