import datetime

import pytest

from pokebridge import cache_keys
from pokebridge.cache_keys import CacheEntry, CacheKey, ResourceKind


class TestCacheKey:
    @pytest.mark.parametrize(
        "key,expected",
        [
            (cache_keys.set_list_key(), "sets:list"),
            (cache_keys.current_sets_key(), "sets:current"),
            (cache_keys.cards_for_set_key("SV8PT5"), "cards:set:sv8pt5"),
            (cache_keys.card_key(" SV8PT5-161 "), "card:sv8pt5-161"),
            (cache_keys.card_pricing_key(73524), "pricing:73524"),
        ],
    )
    def test_rendering(self, key, expected):
        assert str(key) == expected

    def test_case_variants_share_a_key(self):
        assert cache_keys.card_key("sv1-76") == cache_keys.card_key("SV1-76")

    def test_identifier_required(self):
        with pytest.raises(ValueError):
            CacheKey(ResourceKind.CARD, "  ")

    def test_identifier_rejected_for_set_list(self):
        with pytest.raises(ValueError):
            CacheKey(ResourceKind.SET_LIST, "sv1")


class TestCacheEntry:
    def test_sixty_second_ttl(self):
        entry = CacheEntry.create({"id": "sv1-76"}, 60, timestamp=1_000_000)

        assert not entry.is_expired(1_000_000 + 59_000)
        assert not entry.is_expired(1_000_000 + 60_000)
        assert entry.is_expired(1_000_000 + 61_000)

    def test_age_is_floored(self):
        entry = CacheEntry.create("x", 60, timestamp=1_000)
        assert entry.age_seconds(1_000 + 2_999) == 2
        assert entry.age_seconds(0) == 0

    def test_json_round_trip(self):
        entry = CacheEntry.create([1, 2], 30, timestamp=5)
        assert entry.to_json() == {"data": [1, 2], "timestamp": 5, "ttl": 30}
        assert CacheEntry.from_json(entry.to_json()) == entry

    @pytest.mark.parametrize(
        "payload", [None, "text", {"data": 1}, {"data": 1, "timestamp": "soon", "ttl": 1}]
    )
    def test_malformed_entries_are_misses(self, payload):
        assert CacheEntry.from_json(payload) is None


class TestPricingStaleness:
    NOW = datetime.datetime(2025, 3, 1, 12, tzinfo=datetime.timezone.utc)

    def test_missing_is_stale(self):
        assert cache_keys.is_pricing_stale(None, now=self.NOW)

    @pytest.mark.parametrize("hours,stale", [(1, False), (23, False), (25, True), (72, True)])
    def test_age(self, hours, stale):
        last_updated = self.NOW - datetime.timedelta(hours=hours)
        assert cache_keys.is_pricing_stale(last_updated, now=self.NOW) is stale

    def test_naive_timestamps_are_utc(self):
        last_updated = datetime.datetime(2025, 3, 1, 11)
        assert not cache_keys.is_pricing_stale(last_updated, now=self.NOW)

    def test_custom_window(self):
        last_updated = self.NOW - datetime.timedelta(hours=3)
        assert cache_keys.is_pricing_stale(last_updated, now=self.NOW, max_age_hours=2)
