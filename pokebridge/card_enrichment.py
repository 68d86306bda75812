"""
Serve cards through the cache tiers, enriching them across catalogs

Read path: volatile cache => persistent store => origin catalog API.
Enrichment (cross-catalog id discovery, pricing, images) fails open;
only the fetch from a card's origin catalog is allowed to fail a request.
"""
import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

from . import cache_keys, card_builder, constants
from .bridge_models import (
    CardImages,
    CardRecord,
    CardResult,
    CatalogASet,
    CatalogSource,
    PageResult,
)
from .cache_keys import CacheEntry
from .errors import BridgeError, CardNotFoundError, ExternalServiceUnavailable, ParseFailure
from .pricing_builder import build_enhanced_pricing, build_market_price, tcgplayer_prices
from .providers import AbstractProvider
from .set_mapping_index import SetMappingIndex
from .single_flight import SingleFlight
from .stores import AbstractCardStore, VolatileCache
from .utils import card_numbers_match, utc_now

LOGGER = logging.getLogger(__name__)

# (source, set id) => raw sibling card list, shared within one request
SiblingMemo = Dict[Tuple[CatalogSource, str], List[Dict[str, Any]]]


def find_card_by_number(
    cards: List[Dict[str, Any]], card_number: str, number_field: str
) -> Optional[Dict[str, Any]]:
    """
    Find a card by its number, first exactly, then ignoring leading zeros
    :param cards: Raw card objects
    :param card_number: Number to find
    :param number_field: Field holding the number ("number" or "num")
    :return Matching card or None
    """
    cards = [card for card in cards if isinstance(card, dict)]
    for card in cards:
        if str(card.get(number_field, "")) == card_number:
            return card
    for card in cards:
        if card_numbers_match(str(card.get(number_field, "")), card_number):
            return card
    return None


class CardEnrichmentOrchestrator:
    """
    Card and set lookups for both catalogs
    """

    catalog_a: AbstractProvider
    catalog_b: AbstractProvider
    store: AbstractCardStore
    cache: VolatileCache
    set_index: SetMappingIndex
    single_flight: Optional[SingleFlight]

    def __init__(
        self,
        catalog_a: AbstractProvider,
        catalog_b: AbstractProvider,
        store: AbstractCardStore,
        cache: VolatileCache,
        set_index: SetMappingIndex,
        cards_ttl: int = constants.DEFAULT_CARDS_TTL,
        sets_ttl: int = constants.DEFAULT_SETS_TTL,
        pricing_ttl: int = constants.DEFAULT_PRICING_TTL,
        pricing_stale_hours: int = constants.DEFAULT_PRICING_STALE_HOURS,
        max_page_size: int = constants.DEFAULT_MAX_PAGE_SIZE,
        single_flight: Optional[SingleFlight] = None,
    ) -> None:
        self.catalog_a = catalog_a
        self.catalog_b = catalog_b
        self.store = store
        self.cache = cache
        self.set_index = set_index
        self.cards_ttl = cards_ttl
        self.sets_ttl = sets_ttl
        self.pricing_ttl = pricing_ttl
        self.pricing_stale_hours = pricing_stale_hours
        self.max_page_size = max_page_size
        self.single_flight = single_flight

    # Cache helpers
    def _cache_read(self, key: cache_keys.CacheKey) -> Optional[CacheEntry]:
        entry = CacheEntry.from_json(self.cache.get(key))
        if entry is None:
            return None
        if entry.is_expired():
            LOGGER.debug(f"Cache entry {key} expired")
            return None
        return entry

    def _cache_write(self, key: cache_keys.CacheKey, data: Any, ttl: int) -> None:
        self.cache.set(key, CacheEntry.create(data, ttl).to_json(), ttl)

    def _cache_card(self, record: CardRecord) -> None:
        self._cache_write(cache_keys.card_key(record.id), record.to_json(), self.cards_ttl)

    def is_pricing_stale(self, record: CardRecord) -> bool:
        """
        Pricing needs a refresh when it is older than the staleness
        window or the record has no pricing at all
        """
        if record.enhanced_pricing is None and record.pricing is None:
            return True
        return cache_keys.is_pricing_stale(
            record.pricing_last_updated, max_age_hours=self.pricing_stale_hours
        )

    # Cards
    def get_card(
        self, card_id: str, force_refresh: bool = False, set_id: Optional[str] = None
    ) -> CardResult:
        """
        Serve a card from the fastest tier that has a usable copy
        :param card_id: "sv8pt5-161" or "catalogB-73524"
        :param force_refresh: Skip the cached copies and refresh pricing
        :param set_id: Set partition; needed to find Catalog B cards in the store
        :return Card plus whether it came from the volatile cache
        """
        if self.single_flight is None:
            return self._get_card(card_id, force_refresh, set_id)

        return self.single_flight.do(
            f"{cache_keys.card_key(card_id)}:{int(force_refresh)}",
            lambda: self._get_card(card_id, force_refresh, set_id),
        )

    def _get_card(
        self, card_id: str, force_refresh: bool, set_id: Optional[str]
    ) -> CardResult:
        key = cache_keys.card_key(card_id)

        if not force_refresh:
            entry = self._cache_read(key)
            if entry is not None:
                try:
                    card = CardRecord.from_json(entry.data, str(key))
                except ParseFailure as error:
                    LOGGER.warning(f"Ignoring cached {key}: {error}")
                else:
                    LOGGER.debug(f"Serving {card_id} from the volatile cache")
                    return CardResult(
                        card=card, cached=True, cache_age_seconds=entry.age_seconds()
                    )

        record = self._from_store(card_id, set_id)
        if record is not None and not force_refresh and not self.is_pricing_stale(record):
            LOGGER.debug(f"Serving {card_id} from the store")
            self._cache_card(record)
            return CardResult(card=record, cached=False)

        fresh = record is None
        if record is None:
            record = self._fetch_from_origin(card_id, set_id)

        record = self.enrich(
            record,
            refresh_pricing=force_refresh or self.is_pricing_stale(record),
            fresh=fresh,
        )
        self.store.upsert(record)
        self._cache_card(record)
        return CardResult(card=record, cached=False)

    def _from_store(self, card_id: str, set_id: Optional[str]) -> Optional[CardRecord]:
        if card_builder.card_source(card_id) is CatalogSource.CATALOG_A:
            partition = set_id or card_builder.catalog_a_partition(card_id)
        else:
            partition = set_id

        if not partition:
            LOGGER.debug(f"No set given for {card_id}, skipping the store")
            return None
        return self.store.get(card_id, str(partition))

    def _fetch_from_origin(self, card_id: str, set_id: Optional[str]) -> CardRecord:
        source = card_builder.card_source(card_id)
        try:
            if source is CatalogSource.CATALOG_A:
                payload = self.catalog_a.get_card(card_id)
                if not payload:
                    raise CardNotFoundError(card_id)
                return card_builder.build_catalog_a_card(payload)

            numeric_id = card_builder.catalog_b_numeric_id(card_id)
            if numeric_id is None:
                raise CardNotFoundError(card_id)
            payload = self.catalog_b.get_card(numeric_id)
            if not payload:
                raise CardNotFoundError(card_id)
            if set_id and not payload.get("set_id"):
                payload = {**payload, "set_id": set_id}
            return card_builder.build_catalog_b_card(payload)
        except ExternalServiceUnavailable as error:
            LOGGER.error(f"Unable to fetch {card_id} from {source.value}: {error}")
            raise

    # Enrichment
    def enrich(
        self,
        record: CardRecord,
        refresh_pricing: bool = True,
        memo: Optional[SiblingMemo] = None,
        fresh: bool = False,
    ) -> CardRecord:
        """
        Fill in what the other catalog knows about a card.
        Every step is best effort: failures are logged and skipped.
        :param record: Card to enrich
        :param refresh_pricing: Fetch pricing even if the record has some
        :param memo: Sibling card lists already downloaded by this request
        :param fresh: The record was just built from its origin catalog, so the
        prices that came with it are current
        :return Enriched copy of the card
        """
        record = record.model_copy(deep=True)
        memo = {} if memo is None else memo

        sibling = None
        if record.cross_catalog_id is None:
            sibling = self._discover_sibling(record, memo)

        needs_images = record.source is CatalogSource.CATALOG_B and record.images is None
        if refresh_pricing or sibling is not None or needs_images:
            self._refresh_pricing(record, sibling, refresh_pricing, fresh)

        return record

    def _sibling_cards(
        self, source: CatalogSource, set_id: str, memo: SiblingMemo
    ) -> List[Dict[str, Any]]:
        if (source, set_id) not in memo:
            provider = self.catalog_a if source is CatalogSource.CATALOG_A else self.catalog_b
            memo[(source, set_id)] = provider.list_cards_in_set(set_id)
        return memo[(source, set_id)]

    def _discover_sibling(
        self, record: CardRecord, memo: SiblingMemo
    ) -> Optional[Dict[str, Any]]:
        """
        Find the same card in the other catalog and store its id
        :return The sibling's raw card object, or None
        """
        try:
            if record.source is CatalogSource.CATALOG_B:
                sibling_set_id = self.set_index.lookup(record.set_id)
                number_field, id_field = "number", "id"
            else:
                mapping = self.set_index.forward_lookup(record.set_id)
                sibling_set_id = str(mapping.catalog_b_set_id) if mapping else None
                number_field, id_field = "num", "id"

            if sibling_set_id is None:
                LOGGER.debug(f"Set {record.set_id} of {record.id} has no mapping")
                return None

            cards = self._sibling_cards(record.source.sibling, sibling_set_id, memo)
            if not isinstance(cards, list):
                raise ParseFailure(
                    record.source.sibling.value, f"Card list of set {sibling_set_id} is not a list"
                )

            sibling = find_card_by_number(cards, record.card_number, number_field)
            if sibling is None:
                LOGGER.info(
                    f"No card #{record.card_number} in {record.source.sibling.value} "
                    f"set {sibling_set_id} for {record.id}"
                )
                return None

            sibling_id = sibling.get(id_field)
            if sibling_id in (None, ""):
                raise ParseFailure(
                    record.source.sibling.value,
                    f"Card #{record.card_number} of set {sibling_set_id} has no {id_field}",
                )
        except BridgeError as error:
            LOGGER.warning(f"Cross catalog lookup for {record.id} failed: {error}")
            return None

        record.cross_catalog_id = str(sibling_id)
        LOGGER.info(f"Linked {record.id} to {record.cross_catalog_id}")
        return sibling

    def _catalog_b_pricing(self, numeric_id: Any, use_cache: bool) -> Optional[Dict[str, Any]]:
        key = cache_keys.card_pricing_key(numeric_id)
        if use_cache:
            entry = self._cache_read(key)
            if entry is not None:
                return entry.data

        raw_pricing = self.catalog_b.get_card_pricing(numeric_id)
        if raw_pricing and isinstance(raw_pricing, dict):
            self._cache_write(key, raw_pricing, self.pricing_ttl)
        return raw_pricing

    def _refresh_pricing(
        self,
        record: CardRecord,
        sibling: Optional[Dict[str, Any]],
        force: bool,
        fresh: bool = False,
    ) -> None:
        refreshed = False

        if record.source is CatalogSource.CATALOG_A:
            numeric_id = record.cross_catalog_id
        else:
            numeric_id = card_builder.catalog_b_numeric_id(record.id)

        has_own_pricing = fresh and record.enhanced_pricing is not None
        wants_pricing = record.enhanced_pricing is None or (force and not has_own_pricing)
        if numeric_id is not None and wants_pricing:
            try:
                enhanced_pricing = build_enhanced_pricing(
                    self._catalog_b_pricing(numeric_id, use_cache=not force)
                )
            except BridgeError as error:
                LOGGER.warning(f"Graded pricing for {record.id} unavailable: {error}")
            else:
                record.enhanced_pricing = enhanced_pricing
                refreshed = True

        try:
            if record.source is CatalogSource.CATALOG_A:
                if force and not fresh:
                    market_price = build_market_price(self.catalog_a.get_card_pricing(record.id))
                    record.pricing = market_price or record.pricing
                    refreshed = True
            elif record.cross_catalog_id is not None:
                if sibling is None:
                    sibling = self.catalog_a.get_card(record.cross_catalog_id)
                if sibling:
                    self._apply_catalog_a_sibling(record, sibling)
                    refreshed = True
        except BridgeError as error:
            LOGGER.warning(f"Market data for {record.id} unavailable: {error}")

        if refreshed:
            record.pricing_last_updated = utc_now()
        record.last_updated = utc_now()

    @staticmethod
    def _apply_catalog_a_sibling(record: CardRecord, sibling: Dict[str, Any]) -> None:
        if not isinstance(sibling, dict):
            raise ParseFailure(
                CatalogSource.CATALOG_A.value, f"Sibling of {record.id} is not a card object"
            )

        images = sibling.get("images")
        if (
            isinstance(images, dict)
            and isinstance(images.get("small"), str)
            and isinstance(images.get("large"), str)
        ):
            record.images = CardImages(small=images["small"], large=images["large"])
        if not record.rarity and isinstance(sibling.get("rarity"), str):
            record.rarity = sibling["rarity"]
        record.pricing = build_market_price(tcgplayer_prices(sibling)) or record.pricing

    # Sets of cards
    def list_cards_in_set(
        self,
        set_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
        force_refresh: bool = False,
    ) -> PageResult:
        """
        One page of a set's cards, loading the whole set from its
        catalog the first time it is asked for
        :param set_id: Pokemon TCG set id ("sv8pt5") or PokeData numeric set id
        :param page: 1-based page number
        :param page_size: Cards per page, at most max_page_size (default the maximum)
        :param force_refresh: Reload the set from its catalog
        :return Page of cards with the set's total count
        """
        page_size = self.max_page_size if page_size is None else page_size
        if page < 1:
            raise ValueError(f"page must be at least 1, got {page}")
        if not 1 <= page_size <= self.max_page_size:
            raise ValueError(
                f"page_size must be between 1 and {self.max_page_size}, got {page_size}"
            )

        # Pokemon TCG set ids are lower case ("sv8pt5"), PokeData ones numeric
        set_id = str(set_id).strip().lower()
        if not force_refresh:
            result = self.store.get_by_set(set_id, page, page_size)
            if result.total_count:
                LOGGER.debug(f"Serving set {set_id} page {page} from the store")
                return result

        records = self._load_set(set_id)
        self._cache_write(
            cache_keys.cards_for_set_key(set_id),
            [record.to_json() for record in records],
            self.cards_ttl,
        )

        partition = records[0].partition_key if records else set_id
        if partition != set_id:
            LOGGER.info(f"Cards of set {set_id} are stored under {partition}")
        return self.store.get_by_set(partition, page, page_size)

    def _load_set(self, set_id: str) -> List[CardRecord]:
        source = CatalogSource.CATALOG_B if set_id.isdigit() else CatalogSource.CATALOG_A
        try:
            if source is CatalogSource.CATALOG_A:
                raw_cards = self.catalog_a.list_cards_in_set(set_id)
            else:
                raw_cards = self.catalog_b.list_cards_in_set(int(set_id))
        except ExternalServiceUnavailable as error:
            LOGGER.error(f"Unable to load set {set_id} from {source.value}: {error}")
            raise

        LOGGER.info(f"Loading {len(raw_cards)} cards of set {set_id} from {source.value}")

        memo: SiblingMemo = {}
        records = []
        for raw_card in raw_cards:
            try:
                if source is CatalogSource.CATALOG_A:
                    record = card_builder.build_catalog_a_card(raw_card)
                else:
                    record = card_builder.build_catalog_b_card({"set_id": set_id, **raw_card})
            except ParseFailure as error:
                LOGGER.warning(f"Skipping card of set {set_id}: {error}")
                continue

            record = self.enrich(record, refresh_pricing=True, memo=memo, fresh=True)
            self.store.upsert(record)
            records.append(record)

        return records

    def refresh_pricing_for_set(self, set_id: str) -> int:
        """
        Refresh pricing for every stored card of a set that has gone stale
        :param set_id: Set partition
        :return Number of cards refreshed
        """
        memo: SiblingMemo = {}
        refreshed = 0
        page = 1
        while True:
            result = self.store.get_by_set(str(set_id), page, self.max_page_size)
            for record in result.items:
                if not self.is_pricing_stale(record):
                    continue
                try:
                    updated = self.enrich(record, refresh_pricing=True, memo=memo)
                    self.store.upsert(updated)
                except BridgeError as error:
                    LOGGER.warning(f"Pricing refresh for {record.id} failed: {error}")
                    continue

                self._cache_card(updated)
                if updated.pricing_last_updated != record.pricing_last_updated:
                    refreshed += 1

            if page >= result.total_pages:
                break
            page += 1

        LOGGER.info(f"Refreshed pricing for {refreshed} cards of set {set_id}")
        return refreshed

    # Set lists
    @staticmethod
    def _set_to_json(card_set: CatalogASet) -> Dict[str, Any]:
        return card_set.model_dump(by_alias=True, mode="json", exclude_none=True)

    def list_sets(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """
        Every Pokemon TCG API set, newest tier first: cache, store, API
        :param force_refresh: Go straight to the API
        :return Set objects
        """
        key = cache_keys.set_list_key()
        if not force_refresh:
            entry = self._cache_read(key)
            if entry is not None:
                return entry.data

            stored = self.store.get_all_sets()
            if stored:
                sets = [self._set_to_json(card_set) for card_set in stored]
                self._cache_write(key, sets, self.sets_ttl)
                return sets

        try:
            fetched = [CatalogASet.from_api(raw_set) for raw_set in self.catalog_a.list_sets()]
        except (KeyError, TypeError, ValueError) as error:
            raise ParseFailure("PokemonTcgProvider", f"Malformed set payload: {error}") from error

        self.store.save_sets(fetched)
        sets = [self._set_to_json(card_set) for card_set in fetched]
        self._cache_write(key, sets, self.sets_ttl)
        self.cache.delete(cache_keys.current_sets_key())
        return sets

    def list_current_sets(self, today: Optional[datetime.date] = None) -> List[Dict[str, Any]]:
        """
        Sets released within the last year
        :param today: Reference date (default today)
        :return Set objects
        """
        key = cache_keys.current_sets_key()
        entry = self._cache_read(key)
        if entry is not None:
            return entry.data

        stored = self.store.get_current_sets()
        if stored:
            current = [card_set for card_set in stored if card_set.is_current(today)]
        else:
            current = [
                card_set
                for card_set in map(CatalogASet.model_validate, self.list_sets())
                if card_set.is_current(today)
            ]

        sets = [self._set_to_json(card_set) for card_set in current]
        self._cache_write(key, sets, self.sets_ttl)
        return sets
