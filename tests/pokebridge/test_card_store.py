import datetime

from conftest import catalog_a_card
from pokebridge.bridge_models import CatalogASet
from pokebridge.card_builder import build_catalog_a_card
from pokebridge.stores import MemoryCardStore


def make_set(set_id, release_date):
    return CatalogASet.from_api({"id": set_id, "name": set_id.upper(), "releaseDate": release_date})


class TestMemoryCardStore:
    def test_upsert_and_get(self, card_store):
        record = build_catalog_a_card(catalog_a_card())
        card_store.upsert(record)

        stored = card_store.get("sv1-76", "sv1")
        assert stored == record
        assert stored is not record
        assert card_store.get("sv1-76", "sv2") is None

        record.rarity = "Rare"
        card_store.upsert(record)
        assert card_store.get("sv1-76", "sv1").rarity == "Rare"

    def test_get_by_set_pages_by_card_number(self, card_store):
        for number in ["10", "2", "1", "TG01", "3"]:
            card_store.upsert(build_catalog_a_card(catalog_a_card(number=number)))

        first = card_store.get_by_set("sv1", page=1, page_size=2)
        assert [card.card_number for card in first.items] == ["1", "2"]
        assert (first.total_count, first.total_pages, first.page_number) == (5, 3, 1)

        last = card_store.get_by_set("sv1", page=3, page_size=2)
        assert [card.card_number for card in last.items] == ["TG01"]

    def test_empty_set(self, card_store):
        result = card_store.get_by_set("nope", page=1, page_size=500)
        assert (result.items, result.total_count, result.total_pages) == ([], 0, 0)

    def test_sets(self, card_store):
        recent = datetime.date.today() - datetime.timedelta(days=30)
        card_store.save_sets([make_set("base1", "1999/01/09"), make_set("sv9", recent.isoformat())])

        assert [card_set.id for card_set in card_store.get_all_sets()] == ["base1", "sv9"]
        assert [card_set.id for card_set in card_store.get_current_sets()] == ["sv9"]


class BrokenPrimaryQueryStore(MemoryCardStore):
    def _query_sets(self, current_only):
        raise LookupError("index unavailable")


def test_set_queries_fall_back():
    store = BrokenPrimaryQueryStore()
    store.save_sets([make_set("sv1", "2023/03/31")])

    assert [card_set.id for card_set in store.get_all_sets()] == ["sv1"]


def test_set_queries_end_empty():
    assert BrokenPrimaryQueryStore().get_all_sets() == []
