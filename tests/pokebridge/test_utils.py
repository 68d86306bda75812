import datetime

import pytest

from pokebridge import utils


@pytest.mark.parametrize(
    "left,right,expected",
    [
        ("076", "76", True),
        ("76", "076", True),
        ("76", "76", True),
        ("0", "000", True),
        ("TG05", "TG05", True),
        ("TG05", "TG5", False),
        ("76", "77", False),
        ("SV076", "76", False),
    ],
)
def test_card_numbers_match(left, right, expected):
    assert utils.card_numbers_match(left, right) is expected


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Scarlet & Violet", "scarlet violet"),
        ("  Pokémon   GO ", "pokémon go"),
        ("Sun & Moon—Base", "sun moonbase"),
    ],
)
def test_normalize_set_name(name, expected):
    assert utils.normalize_set_name(name) == expected


@pytest.mark.parametrize(
    "name,expected",
    [
        ("SV Paldea Evolved", "paldea evolved"),
        ("SWSH Evolving Skies", "evolving skies"),
        ("Scarlet & Violet Base", "scarlet violet"),
        ("Base Set", "base"),
        ("Base", "base"),
    ],
)
def test_clean_set_name(name, expected):
    assert utils.clean_set_name(name) == expected


def test_significant_name_tokens():
    assert utils.significant_name_tokens("ex ruby and sapphire") == ["ruby", "and", "sapphire"]


@pytest.mark.parametrize(
    "name_a,name_b,expected",
    [
        ("plasma freeze", "plasmafreeze bw", 2),
        ("hidden fates", "shiny vault hidden fates", 2),
        ("ex ruby and sapphire", "ruby", 1),
        ("sv base", "base", 1),
    ],
)
def test_shared_name_token_count(name_a, name_b, expected):
    assert utils.shared_name_token_count(name_a, name_b) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2023/03/31", datetime.date(2023, 3, 31)),
        ("2023-03-31", datetime.date(2023, 3, 31)),
        ("Fri, 31 Mar 2023 00:00:00 GMT", datetime.date(2023, 3, 31)),
        (datetime.datetime(2023, 3, 31, 8), datetime.date(2023, 3, 31)),
        (None, None),
        ("", None),
        ("not a date", None),
    ],
)
def test_parse_date(value, expected):
    assert utils.parse_date(value) == expected


def test_days_between():
    assert utils.days_between(datetime.date(2023, 1, 1), datetime.date(2022, 12, 1)) == 31
    assert utils.days_between(None, datetime.date(2022, 12, 1)) is None
