"""
Cache key derivation and TTL/staleness arithmetic

Keys are built from a resource kind and a case-normalized identifier,
so "SV8PT5" and "sv8pt5" always land on the same cache entry.
"""
import dataclasses
import datetime
import enum
import math
import time
from typing import Any, Dict, Generic, Optional, TypeVar

from . import constants

T = TypeVar("T")


class ResourceKind(enum.Enum):
    """
    Types of resource held in the volatile cache
    """

    SET_LIST = "sets:list"
    CURRENT_SETS = "sets:current"
    CARDS_FOR_SET = "cards:set"
    CARD = "card"
    CARD_PRICING = "pricing"

    @property
    def takes_identifier(self) -> bool:
        return self not in (ResourceKind.SET_LIST, ResourceKind.CURRENT_SETS)


@dataclasses.dataclass(frozen=True)
class CacheKey:
    """
    Composite cache key: resource kind plus normalized identifier
    """

    kind: ResourceKind
    identifier: str = ""

    def __post_init__(self) -> None:
        normalized = str(self.identifier).strip().lower()
        if self.kind.takes_identifier and not normalized:
            raise ValueError(f"{self.kind.name} cache keys need an identifier")
        if not self.kind.takes_identifier and normalized:
            raise ValueError(f"{self.kind.name} cache keys take no identifier")
        object.__setattr__(self, "identifier", normalized)

    def __str__(self) -> str:
        if not self.kind.takes_identifier:
            return self.kind.value
        return f"{self.kind.value}:{self.identifier}"


def set_list_key() -> CacheKey:
    return CacheKey(ResourceKind.SET_LIST)


def current_sets_key() -> CacheKey:
    return CacheKey(ResourceKind.CURRENT_SETS)


def cards_for_set_key(set_id: Any) -> CacheKey:
    return CacheKey(ResourceKind.CARDS_FOR_SET, str(set_id))


def card_key(card_id: Any) -> CacheKey:
    return CacheKey(ResourceKind.CARD, str(card_id))


def card_pricing_key(card_id: Any) -> CacheKey:
    return CacheKey(ResourceKind.CARD_PRICING, str(card_id))


def now_ms() -> int:
    """
    :return Current epoch time in milliseconds
    """
    return int(time.time() * 1000)


@dataclasses.dataclass
class CacheEntry(Generic[T]):
    """
    Value stored in the volatile cache, stamped with its creation time
    """

    data: T
    timestamp: int
    ttl_seconds: int

    @classmethod
    def create(
        cls, data: T, ttl_seconds: int, timestamp: Optional[int] = None
    ) -> "CacheEntry[T]":
        return cls(
            data=data,
            timestamp=now_ms() if timestamp is None else timestamp,
            ttl_seconds=ttl_seconds,
        )

    def expires_at(self) -> int:
        return self.timestamp + self.ttl_seconds * 1000

    def is_expired(self, current_ms: Optional[int] = None) -> bool:
        """
        An entry is expired once now is strictly past timestamp + ttl
        :param current_ms: Epoch milliseconds to test against (default now)
        :return Is the entry expired
        """
        current_ms = now_ms() if current_ms is None else current_ms
        return current_ms > self.expires_at()

    def age_seconds(self, current_ms: Optional[int] = None) -> int:
        current_ms = now_ms() if current_ms is None else current_ms
        return max(0, math.floor((current_ms - self.timestamp) / 1000))

    def to_json(self) -> Dict[str, Any]:
        return {"data": self.data, "timestamp": self.timestamp, "ttl": self.ttl_seconds}

    @classmethod
    def from_json(cls, payload: Any) -> Optional["CacheEntry[Any]"]:
        """
        Rebuild an entry read back from the cache
        :param payload: Decoded cache value
        :return Entry, or None if the value is not a cache entry
        """
        if not isinstance(payload, dict):
            return None
        try:
            return cls(
                data=payload["data"],
                timestamp=int(payload["timestamp"]),
                ttl_seconds=int(payload["ttl"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


def is_pricing_stale(
    last_updated: Optional[datetime.datetime],
    now: Optional[datetime.datetime] = None,
    max_age_hours: int = constants.DEFAULT_PRICING_STALE_HOURS,
) -> bool:
    """
    Pricing is stale when it was never fetched or is older than max_age_hours
    :param last_updated: When the pricing was last refreshed
    :param now: Reference time (default now, UTC)
    :param max_age_hours: Age threshold
    :return Should the pricing be refreshed
    """
    if last_updated is None:
        return True

    now = now or datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)
    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=datetime.timezone.utc)
    return now - last_updated > datetime.timedelta(hours=max_age_hours)
