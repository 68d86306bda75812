"""
Persistent card and set store
"""
import abc
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from ..bridge_models import CardRecord, CatalogASet, PageResult

LOGGER = logging.getLogger(__name__)


class AbstractCardStore(abc.ABC):
    """
    What the orchestrator needs from the persistent store.
    Cards are partitioned by their set id.
    """

    @abc.abstractmethod
    def get(self, card_id: str, partition: str) -> Optional[CardRecord]:
        """
        :param card_id: Stored card id
        :param partition: Set id the card lives under
        :return Card or None
        """

    @abc.abstractmethod
    def get_by_set(self, set_id: str, page: int, page_size: int) -> PageResult:
        """
        One page of a set's cards, ordered by card number.
        totalCount is the store's full count for the set.
        """

    @abc.abstractmethod
    def upsert(self, record: CardRecord) -> CardRecord:
        pass

    @abc.abstractmethod
    def save_sets(self, sets: Iterable[CatalogASet]) -> int:
        """
        Save sets one at a time
        :return Number of sets saved
        """

    @abc.abstractmethod
    def _query_sets(self, current_only: bool) -> List[CatalogASet]:
        pass

    @abc.abstractmethod
    def _query_sets_fallback(self, current_only: bool) -> List[CatalogASet]:
        """
        Secondary, slower form of _query_sets
        """

    def _query_with_fallback(self, current_only: bool) -> List[CatalogASet]:
        for query in (self._query_sets, self._query_sets_fallback):
            try:
                sets = query(current_only)
            except (LookupError, OSError, ValueError) as error:
                LOGGER.warning(f"Set query {query.__name__} failed: {error}")
                continue
            if sets:
                return sets
        return []

    def get_all_sets(self) -> List[CatalogASet]:
        return self._query_with_fallback(current_only=False)

    def get_current_sets(self) -> List[CatalogASet]:
        return self._query_with_fallback(current_only=True)


def _card_sort_key(record: CardRecord) -> Tuple[int, int, str]:
    number = record.card_number
    if number.isdigit():
        return 0, int(number), number
    return 1, 0, number


class MemoryCardStore(AbstractCardStore):
    """
    In process store, for local runs and tests
    """

    def __init__(self) -> None:
        self._cards: Dict[str, Dict[str, CardRecord]] = {}
        self._sets: Dict[str, CatalogASet] = {}
        self._lock = threading.Lock()

    def get(self, card_id: str, partition: str) -> Optional[CardRecord]:
        record = self._cards.get(str(partition), {}).get(str(card_id))
        return record.model_copy(deep=True) if record else None

    def get_by_set(self, set_id: str, page: int, page_size: int) -> PageResult:
        records = sorted(self._cards.get(str(set_id), {}).values(), key=_card_sort_key)
        start = (page - 1) * page_size
        return PageResult.paginate(
            [record.model_copy(deep=True) for record in records[start : start + page_size]],
            total_count=len(records),
            page=page,
            page_size=page_size,
        )

    def upsert(self, record: CardRecord) -> CardRecord:
        with self._lock:
            self._cards.setdefault(record.partition_key, {})[record.id] = record.model_copy(
                deep=True
            )
        LOGGER.debug(f"Upserted {record.id} into {record.partition_key}")
        return record

    def save_sets(self, sets: Iterable[CatalogASet]) -> int:
        count = 0
        for card_set in sets:
            with self._lock:
                self._sets[card_set.id] = card_set
            count += 1
        LOGGER.debug(f"Saved {count} sets")
        return count

    def _query_sets(self, current_only: bool) -> List[CatalogASet]:
        sets = sorted(
            self._sets.values(),
            key=lambda card_set: (card_set.release_date is None, card_set.release_date, card_set.id),
        )
        if current_only:
            sets = [card_set for card_set in sets if card_set.is_current()]
        return sets

    def _query_sets_fallback(self, current_only: bool) -> List[CatalogASet]:
        sets = list(self._sets.values())
        if current_only:
            sets = [card_set for card_set in sets if card_set.is_current()]
        return sets
