import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError
from responses import matchers

from conftest import (
    CATALOG_A_URL,
    CATALOG_B_URL,
    TEST_CONFIG,
    catalog_a_card,
    catalog_b_card,
    catalog_b_pricing,
)
from pokebridge.bridge_config import BridgeConfig
from pokebridge.errors import ExternalServiceUnavailable, ParseFailure
from pokebridge.providers import PokeDataProvider, PokemonTcgProvider


class TestPokemonTcgProvider:
    def setup_method(self):
        self.provider = PokemonTcgProvider(BridgeConfig.from_string(TEST_CONFIG))

    def test_build_http_header(self):
        assert self.provider._build_http_header() == {"X-Api-Key": "catalog-a-key"}
        assert self.provider.session.headers["X-Api-Key"] == "catalog-a-key"
        assert self.provider.session.headers["User-Agent"] == "pokebridge/0.0.0-test"

    @responses.activate
    def test_list_cards_in_set_walks_pages(self):
        self.provider.page_size = 2
        cards = [catalog_a_card(number=str(number)) for number in range(1, 4)]
        responses.add(
            responses.GET,
            f"{CATALOG_A_URL}/cards",
            json={"data": cards[:2], "page": 1, "pageSize": 2, "count": 2, "totalCount": 3},
            match=[matchers.query_param_matcher({"q": "set.id:sv1", "page": "1", "pageSize": "2"})],
        )
        responses.add(
            responses.GET,
            f"{CATALOG_A_URL}/cards",
            json={"data": cards[2:], "page": 2, "pageSize": 2, "count": 1, "totalCount": 3},
            match=[matchers.query_param_matcher({"q": "set.id:sv1", "page": "2", "pageSize": "2"})],
        )

        assert [card["number"] for card in self.provider.list_cards_in_set("sv1")] == ["1", "2", "3"]

    @responses.activate
    def test_get_card(self):
        responses.add(responses.GET, f"{CATALOG_A_URL}/cards/sv1-76", json={"data": catalog_a_card()})
        responses.add(responses.GET, f"{CATALOG_A_URL}/cards/sv1-999", status=404)

        assert self.provider.get_card("sv1-76")["name"] == "Pikachu"
        assert self.provider.get_card("sv1-999") is None
        assert responses.calls[0].request.headers["X-Api-Key"] == "catalog-a-key"

    @responses.activate
    def test_get_card_pricing(self):
        responses.add(responses.GET, f"{CATALOG_A_URL}/cards/sv1-76", json={"data": catalog_a_card()})
        assert self.provider.get_card_pricing("sv1-76") == {
            "normal": {"low": 0.05, "mid": 0.2, "high": 2.0, "market": 0.12}
        }

    @responses.activate
    def test_list_sets(self):
        responses.add(
            responses.GET,
            f"{CATALOG_A_URL}/sets",
            json={"data": [{"id": "sv1", "name": "Scarlet & Violet"}], "totalCount": 1},
        )
        assert [card_set["id"] for card_set in self.provider.list_sets()] == ["sv1"]

    @responses.activate
    def test_server_error(self):
        responses.add(responses.GET, f"{CATALOG_A_URL}/cards/sv1-76", status=503)
        with pytest.raises(ExternalServiceUnavailable) as error:
            self.provider.get_card("sv1-76")
        assert error.value.status_code == 503

    @responses.activate
    def test_connection_error(self):
        responses.add(
            responses.GET,
            f"{CATALOG_A_URL}/cards/sv1-76",
            body=RequestsConnectionError("refused"),
        )
        with pytest.raises(ExternalServiceUnavailable):
            self.provider.get_card("sv1-76")

    @responses.activate
    def test_not_json(self):
        responses.add(responses.GET, f"{CATALOG_A_URL}/cards/sv1-76", body="<html>")
        with pytest.raises(ParseFailure):
            self.provider.get_card("sv1-76")


class TestPokeDataProvider:
    def setup_method(self):
        self.provider = PokeDataProvider(BridgeConfig.from_string(TEST_CONFIG))

    def test_build_http_header(self):
        assert self.provider._build_http_header() == {"Authorization": "Bearer catalog-b-key"}

    @responses.activate
    def test_list_sets_by_language(self):
        responses.add(
            responses.GET,
            f"{CATALOG_B_URL}/sets",
            json=[
                {"id": 510, "name": "Scarlet & Violet Base", "language": "ENGLISH"},
                {"id": 511, "name": "Scarlet & Violet", "language": "JAPANESE"},
            ],
        )

        assert len(self.provider.list_sets()) == 2
        assert [card_set["id"] for card_set in self.provider.list_sets("ENGLISH")] == [510]
        assert responses.calls[0].request.headers["Authorization"] == "Bearer catalog-b-key"

    @responses.activate
    def test_list_cards_in_set(self):
        responses.add(
            responses.GET,
            f"{CATALOG_B_URL}/set",
            json=[catalog_b_card()],
            match=[matchers.query_param_matcher({"set_id": "510"})],
        )
        assert self.provider.list_cards_in_set(510)[0]["num"] == "076"

    @responses.activate
    def test_get_card_and_pricing(self):
        responses.add(
            responses.GET,
            f"{CATALOG_B_URL}/pricing",
            json=catalog_b_card(pricing=catalog_b_pricing()),
            match=[matchers.query_param_matcher({"id": "73524", "asset_type": "CARD"})],
        )

        assert self.provider.get_card(73524)["name"] == "Pikachu"
        assert self.provider.get_card_pricing(73524)["PSA 10.0"]["value"] == 120.0

    @responses.activate
    def test_unexpected_payload(self):
        responses.add(responses.GET, f"{CATALOG_B_URL}/sets", json={"error": "nope"})
        with pytest.raises(ParseFailure):
            self.provider.list_sets()
